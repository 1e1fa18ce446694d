# routers/search.py - Substring search over the caller's projects and tasks
from typing import Optional, List, Union, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, CurrentUser
from database import get_db_session
from errors import ValidationError
from models import Project, ProjectMember, Task, TaskStatus, TaskPriority, TaskType

router = APIRouter(prefix="/api/v1/search", tags=["Search"])


class ProjectHit(BaseModel):
    type: Literal["project"] = "project"
    id: str
    name: str
    description: Optional[str] = None


class TaskHit(BaseModel):
    type: Literal["task"] = "task"
    id: str
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    task_type: str
    project_id: str
    project_name: str


@router.get("", response_model=List[Union[ProjectHit, TaskHit]])
async def search(
    term: Optional[str] = Query(default=None),
    status: Optional[str] = None,
    priority: Optional[str] = None,
    task_type: Optional[str] = Query(default=None, alias="type"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Projects first, then tasks; only projects the caller created or belongs to"""
    if not term or not term.strip():
        raise ValidationError("Search term is required")

    pattern = f"%{term.strip()}%"
    member_of = select(ProjectMember.project_id).where(ProjectMember.user_id == user.id)
    visible = or_(Project.created_by == user.id, Project.id.in_(member_of))

    project_stmt = (
        select(Project)
        .where(visible, or_(Project.name.ilike(pattern), Project.description.ilike(pattern)))
        .order_by(Project.created_at.desc())
    )
    projects = (await db.execute(project_stmt)).scalars().all()

    task_stmt = (
        select(Task, Project.name)
        .join(Project, Task.project_id == Project.id)
        .where(visible, or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))
        .order_by(Project.created_at.desc(), Task.position.asc())
    )
    # Unknown filter values are ignored
    if status:
        try:
            task_stmt = task_stmt.where(Task.status == TaskStatus(status))
        except ValueError:
            pass
    if priority:
        try:
            task_stmt = task_stmt.where(Task.priority == TaskPriority(priority))
        except ValueError:
            pass
    if task_type:
        try:
            task_stmt = task_stmt.where(Task.task_type == TaskType(task_type))
        except ValueError:
            pass
    task_rows = (await db.execute(task_stmt)).all()

    results: List[Union[ProjectHit, TaskHit]] = [
        ProjectHit(id=p.id, name=p.name, description=p.description) for p in projects
    ]
    results.extend(
        TaskHit(
            id=t.id,
            title=t.title,
            description=t.description,
            status=t.status.value,
            priority=t.priority.value,
            task_type=t.task_type.value,
            project_id=t.project_id,
            project_name=project_name,
        )
        for t, project_name in task_rows
    )
    return results
