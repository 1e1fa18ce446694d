# task_service.py - Coordinates every task mutation against the project store
# Each write is one load, an in-memory mutation of the aggregate, and one save.
# There is no concurrency token: concurrent writers to the same task race and
# the last save wins field by field, while every writer's log entry survives.
import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from activity_log import ActivityLogger, ActivityPage
from errors import NotFoundError
from models import Project, Task, ActivityLog, new_uuid, utcnow
from project_store import ProjectStore
from task_access import TaskAccessGuard
from task_mutator import (
    TaskMutator, TaskPatch, Timeline,
    parse_status, parse_priority, parse_task_type,
    validate_title, validate_timeline, unique_ids,
)

logger = logging.getLogger("taskflow.tasks")


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    task_type: str = "task"
    status: str = "Not Started"
    priority: str = "none"
    assigned_to: Optional[List[str]] = None
    timeline: Optional[Timeline] = None


class TaskService:
    def __init__(self, store: ProjectStore, directory, guard=TaskAccessGuard):
        self.store = store
        self.directory = directory
        self.guard = guard
        self.mutator = TaskMutator(directory)
        self.activity = ActivityLogger(directory)

    # ------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------

    async def _load_project(self, project_id: str) -> Project:
        project = await self.store.find_by_id(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    @staticmethod
    def _find_task(project: Project, task_id: str) -> Task:
        task = project.tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    async def list_tasks(self, project_id: str) -> List[Task]:
        project = await self._load_project(project_id)
        return list(project.tasks.values())

    async def get_task(self, project_id: str, task_id: str) -> Task:
        project = await self._load_project(project_id)
        return self._find_task(project, task_id)

    # ------------------------------------------------------------
    # Activity
    # ------------------------------------------------------------

    def _log(self, task: Task, fragments: List[str], user_id: str) -> Optional[ActivityLog]:
        """Best effort: a failed append is reported, the mutation still persists"""
        try:
            return self.activity.append(task, fragments, user_id)
        except Exception as e:
            logger.error(f"Activity log append failed for task {task.id}: {e}", exc_info=True)
            return None

    async def get_activity(self, project_id: str, task_id: str, page=1) -> ActivityPage:
        project = await self._load_project(project_id)
        task = self._find_task(project, task_id)
        return await self.activity.get_page(task, page)

    # ------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------

    async def create_task(self, project_id: str, data: TaskCreate, user_id: str) -> Task:
        project = await self._load_project(project_id)

        title = validate_title(data.title)
        task_type = parse_task_type(data.task_type)
        status = parse_status(data.status)
        priority = parse_priority(data.priority)
        start = data.timeline.start_date if data.timeline else None
        end = data.timeline.end_date if data.timeline else None
        validate_timeline(start, end)

        now = utcnow()
        task = Task(
            id=new_uuid(),
            project_id=project.id,
            title=title,
            description=data.description,
            task_type=task_type,
            status=status,
            priority=priority,
            start_date=start,
            end_date=end,
            assigned_to=unique_ids(data.assigned_to or []) or [user_id],
            created_by=user_id,
            created_at=now,
            updated_at=now,
        )
        project.add_task(task)
        project.updated_at = now
        self._log(task, ["Task created"], user_id)

        await self.store.save(project)
        logger.info(f"Task {task.id} created in project {project.id} by {user_id}")
        return task

    async def update_task(self, project_id: str, task_id: str, patch: TaskPatch, user_id: str) -> Task:
        project = await self.store.find_by_id(project_id)
        task = self.guard.authorize_status_edit(project, task_id, user_id)

        fragments = await self.mutator.apply(task, patch)
        self._log(task, fragments, user_id)

        await self.store.save(project)
        if fragments:
            logger.info(f"Task {task_id} updated by {user_id}: {len(fragments)} change(s)")
        return task

    async def update_task_status(self, project_id: str, task_id: str, status, user_id: str) -> Task:
        new_status = parse_status(status)
        project = await self.store.find_by_id(project_id)
        task = self.guard.authorize_status_edit(project, task_id, user_id)

        if new_status == task.status:
            return task

        task.status = new_status
        task.updated_at = utcnow()
        self._log(task, [f"Task status updated to {new_status.value}"], user_id)

        await self.store.save(project)
        logger.info(f"Task {task_id} status set to {new_status.value} by {user_id}")
        return task

    async def delete_task(self, project_id: str, task_id: str, user_id: str) -> Task:
        project = await self._load_project(project_id)
        task = self._find_task(project, task_id)

        # Staged on its own so it is written even though the task row goes away
        entry = self._log(task, [f'Task "{task.title}" deleted'], user_id)
        if entry is not None:
            self.store.record(entry)
        project.remove_task(task_id)
        project.updated_at = utcnow()

        await self.store.save(project)
        logger.info(f"Task {task_id} deleted from project {project_id} by {user_id}")
        return task
