# task_access.py - Who may change a task's status
from typing import Optional

from errors import NotFoundError, PermissionDenied
from models import Project, Task


class TaskAccessGuard:
    """Creator of the project or any assignee of the task"""

    @staticmethod
    def can_edit_status(project: Project, task: Task, user_id: str) -> bool:
        return user_id in (task.assigned_to or []) or project.created_by == user_id

    @classmethod
    def authorize_status_edit(cls, project: Optional[Project], task_id: str, user_id: str) -> Task:
        if project is None:
            raise NotFoundError("Project not found")
        task = project.tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        if not cls.can_edit_status(project, task, user_id):
            raise PermissionDenied("You do not have permission to edit this task status")
        return task
