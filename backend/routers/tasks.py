# routers/tasks.py - Task lifecycle and activity log endpoints for a project
from typing import Optional, List, Dict

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from activity_log import ActivityPage
from auth import get_current_user, CurrentUser
from database import get_db_session
from directory import UserDirectory, UserRef, UNKNOWN_USER
from models import Task, as_utc
from project_store import ProjectStore
from task_mutator import TaskPatch
from task_service import TaskService, TaskCreate

router = APIRouter(prefix="/api/v1/projects/{project_id}/tasks", tags=["Tasks"])


# ============================================================
# SCHEMAS
# ============================================================

class StatusUpdate(BaseModel):
    status: str


class TimelineOut(BaseModel):
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class TaskOut(BaseModel):
    id: str
    project_id: str
    title: str
    description: Optional[str] = None
    task_type: str
    status: str
    priority: str
    timeline: TimelineOut
    assigned_to: List[UserRef] = []
    created_by: UserRef
    created_at: str
    updated_at: str


# ============================================================
# HELPERS
# ============================================================

def _service(db: AsyncSession = Depends(get_db_session)) -> TaskService:
    return TaskService(ProjectStore(db), UserDirectory(db))


def _ts(dt) -> Optional[str]:
    return as_utc(dt).isoformat() if dt else None


def _day(d) -> Optional[str]:
    return d.isoformat() if d else None


def _value(v) -> str:
    return v.value if hasattr(v, "value") else v


def _task_to_out(task: Task, names: Dict[str, str]) -> TaskOut:
    def ref(uid: str) -> UserRef:
        return UserRef(id=uid, name=names.get(uid, UNKNOWN_USER))

    return TaskOut(
        id=task.id,
        project_id=task.project_id,
        title=task.title,
        description=task.description,
        task_type=_value(task.task_type),
        status=_value(task.status),
        priority=_value(task.priority),
        timeline=TimelineOut(start_date=_day(task.start_date), end_date=_day(task.end_date)),
        assigned_to=[ref(uid) for uid in (task.assigned_to or [])],
        created_by=ref(task.created_by),
        created_at=_ts(task.created_at),
        updated_at=_ts(task.updated_at),
    )


async def _render(service: TaskService, tasks: List[Task]) -> List[TaskOut]:
    ids = {t.created_by for t in tasks}
    for t in tasks:
        ids.update(t.assigned_to or [])
    names = await service.directory.display_names(ids)
    return [_task_to_out(t, names) for t in tasks]


# ============================================================
# TASK ENDPOINTS
# ============================================================

@router.get("", response_model=List[TaskOut])
async def list_tasks(
    project_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(_service),
):
    """Tasks in creation order, with assignees resolved"""
    tasks = await service.list_tasks(project_id)
    return await _render(service, tasks)


@router.post("", response_model=TaskOut, status_code=201)
async def create_task(
    project_id: str,
    data: TaskCreate,
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(_service),
):
    task = await service.create_task(project_id, data, user.id)
    return (await _render(service, [task]))[0]


@router.get("/{task_id}", response_model=TaskOut)
async def get_task(
    project_id: str,
    task_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(_service),
):
    task = await service.get_task(project_id, task_id)
    return (await _render(service, [task]))[0]


@router.put("/{task_id}", response_model=TaskOut)
async def update_task(
    project_id: str,
    task_id: str,
    data: TaskPatch,
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(_service),
):
    """Partial update; writes one activity entry summarising every change"""
    task = await service.update_task(project_id, task_id, data, user.id)
    return (await _render(service, [task]))[0]


@router.patch("/{task_id}/status", response_model=TaskOut)
async def update_task_status(
    project_id: str,
    task_id: str,
    data: StatusUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(_service),
):
    """Assignees and the project creator only"""
    task = await service.update_task_status(project_id, task_id, data.status, user.id)
    return (await _render(service, [task]))[0]


@router.delete("/{task_id}")
async def delete_task(
    project_id: str,
    task_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(_service),
):
    await service.delete_task(project_id, task_id, user.id)
    return {"message": "Task deleted successfully", "task_id": task_id}


# ============================================================
# ACTIVITY LOG
# ============================================================

@router.get("/{task_id}/activity", response_model=ActivityPage)
async def get_task_activity(
    project_id: str,
    task_id: str,
    page: Optional[str] = Query(default=None, description="1-based page number"),
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(_service),
):
    """Newest first, five entries per page"""
    return await service.get_activity(project_id, task_id, page)
