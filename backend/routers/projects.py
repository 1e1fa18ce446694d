# routers/projects.py - Project CRUD and member management
import logging
from typing import Optional, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, CurrentUser
from database import get_db_session
from directory import UserDirectory, UserRef
from errors import NotFoundError, PermissionDenied, ValidationError
from models import Project, new_uuid, utcnow, as_utc
from project_store import ProjectStore

logger = logging.getLogger("taskflow.projects")

router = APIRouter(prefix="/api/v1/projects", tags=["Projects"])


# ============================================================
# SCHEMAS
# ============================================================

class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class MemberAdd(BaseModel):
    username: str = Field(..., min_length=1)


class ProjectOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_by: UserRef
    members: List[UserRef] = []
    task_count: int = 0
    created_at: str
    updated_at: str


# ============================================================
# HELPERS
# ============================================================

def _ts(dt) -> Optional[str]:
    return as_utc(dt).isoformat() if dt else None


async def _project_to_out(project: Project, directory: UserDirectory) -> ProjectOut:
    creator, *members = await directory.refs([project.created_by] + project.member_ids)
    return ProjectOut(
        id=project.id,
        name=project.name,
        description=project.description,
        created_by=creator,
        members=members,
        task_count=len(project.tasks),
        created_at=_ts(project.created_at),
        updated_at=_ts(project.updated_at),
    )


async def _get_project(store: ProjectStore, project_id: str) -> Project:
    project = await store.find_by_id(project_id)
    if not project:
        raise NotFoundError("Project not found")
    return project


def _require_creator(project: Project, user: CurrentUser, action: str) -> None:
    if project.created_by != user.id:
        raise PermissionDenied(f"You don't have permission to {action} this project")


# ============================================================
# ENDPOINTS
# ============================================================

@router.get("", response_model=List[ProjectOut])
async def list_projects(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Projects the caller created or belongs to, newest first"""
    projects = await ProjectStore(db).list_for_user(user.id)
    directory = UserDirectory(db)
    return [await _project_to_out(p, directory) for p in projects]


@router.post("", response_model=ProjectOut, status_code=201)
async def create_project(
    data: ProjectCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    if not data.name.strip():
        raise ValidationError("Project name is required")

    now = utcnow()
    project = Project(
        id=new_uuid(),
        name=data.name,
        description=data.description,
        created_by=user.id,
        created_at=now,
        updated_at=now,
        member_links=[],
        tasks={},
    )
    project = await ProjectStore(db).save(project)
    logger.info(f"Project {project.id} created by {user.id}")
    return await _project_to_out(project, UserDirectory(db))


@router.get("/{project_id}", response_model=ProjectOut)
async def get_project(
    project_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    project = await _get_project(ProjectStore(db), project_id)
    return await _project_to_out(project, UserDirectory(db))


@router.put("/{project_id}", response_model=ProjectOut)
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Only the creator may rename or re-describe a project"""
    store = ProjectStore(db)
    project = await _get_project(store, project_id)
    _require_creator(project, user, "update")

    # Empty values keep the current ones
    project.name = data.name or project.name
    project.description = data.description or project.description
    project.updated_at = utcnow()

    project = await store.save(project)
    return await _project_to_out(project, UserDirectory(db))


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    store = ProjectStore(db)
    project = await _get_project(store, project_id)
    _require_creator(project, user, "delete")

    await store.delete(project)
    logger.info(f"Project {project_id} deleted by {user.id}")
    return {"message": "Project deleted successfully", "project_id": project_id}


@router.post("/{project_id}/members", response_model=ProjectOut)
async def add_member(
    project_id: str,
    data: MemberAdd,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Invite an existing user by username"""
    store = ProjectStore(db)
    directory = UserDirectory(db)
    project = await _get_project(store, project_id)

    member = await directory.find_by_username(data.username)
    if not member:
        raise NotFoundError("User not found")
    if not project.add_member(member.id):
        raise ValidationError("User is already a member of this project")

    project.updated_at = utcnow()
    project = await store.save(project)
    logger.info(f"User {member.id} added to project {project_id} by {user.id}")
    return await _project_to_out(project, directory)
