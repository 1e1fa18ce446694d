# task_mutator.py - Apply a partial update to a task and describe what changed
from datetime import date
from typing import List, Optional, Dict, Iterable

from pydantic import BaseModel

from errors import ValidationError
from models import Task, TaskStatus, TaskPriority, TaskType, utcnow

NOT_SET = "Not set"


# ============================================================
# SCHEMAS
# ============================================================

class Timeline(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class TaskPatch(BaseModel):
    """Partial update; only keys present in the payload are considered.

    Unknown keys such as ``id`` or ``created_at`` are dropped by pydantic.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    timeline: Optional[Timeline] = None
    assigned_to: Optional[List[str]] = None


# ============================================================
# VALIDATION HELPERS
# ============================================================

def _parse_enum(enum_cls, value, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(f'"{m.value}"' for m in enum_cls)
        raise ValidationError(f"Invalid {label} {value!r}. Must be one of: {allowed}")


def parse_status(value) -> TaskStatus:
    return _parse_enum(TaskStatus, value, "status")


def parse_priority(value) -> TaskPriority:
    return _parse_enum(TaskPriority, value, "priority")


def parse_task_type(value) -> TaskType:
    return _parse_enum(TaskType, value, "task type")


def validate_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        raise ValidationError("Task title is required")
    return title


def validate_timeline(start: Optional[date], end: Optional[date]) -> None:
    if start and end and end < start:
        raise ValidationError("Timeline end date cannot be before its start date")


def unique_ids(ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(i for i in ids if i))


def format_date(value: Optional[date]) -> str:
    return value.strftime("%d/%m/%Y") if value else NOT_SET


def _enum_value(value) -> Optional[str]:
    return value.value if hasattr(value, "value") else value


# ============================================================
# MUTATOR
# ============================================================

class TaskMutator:
    """Applies a TaskPatch in place and returns one diff fragment per changed field"""

    def __init__(self, directory):
        self.directory = directory

    async def apply(self, task: Task, patch: TaskPatch) -> List[str]:
        present = patch.model_fields_set

        # Validate everything before the task is touched
        new_status = parse_status(patch.status) if "status" in present else None
        new_priority = parse_priority(patch.priority) if "priority" in present else None
        if "title" in present:
            validate_title(patch.title)

        new_start, new_end = task.start_date, task.end_date
        if "timeline" in present:
            if patch.timeline is None:
                new_start, new_end = None, None
            else:
                timeline_fields = patch.timeline.model_fields_set
                if "start_date" in timeline_fields:
                    new_start = patch.timeline.start_date
                if "end_date" in timeline_fields:
                    new_end = patch.timeline.end_date
            validate_timeline(new_start, new_end)

        fragments: List[str] = []

        if "title" in present and patch.title != task.title:
            fragments.append(f'Title changed from "{task.title}" to "{patch.title}"')
            task.title = patch.title

        if "description" in present and (patch.description or "") != (task.description or ""):
            fragments.append("Description updated")
            task.description = patch.description

        if new_status is not None and new_status != task.status:
            fragments.append(
                f'Status changed from "{_enum_value(task.status)}" to "{new_status.value}"'
            )
            task.status = new_status

        if new_priority is not None and new_priority != task.priority:
            fragments.append(
                f'Priority changed from "{_enum_value(task.priority)}" to "{new_priority.value}"'
            )
            task.priority = new_priority

        if new_start != task.start_date:
            fragments.append(
                f'Start date changed from "{format_date(task.start_date)}" to "{format_date(new_start)}"'
            )
            task.start_date = new_start
        if new_end != task.end_date:
            fragments.append(
                f'End date changed from "{format_date(task.end_date)}" to "{format_date(new_end)}"'
            )
            task.end_date = new_end

        if "assigned_to" in present:
            fragments.extend(await self._apply_assignees(task, unique_ids(patch.assigned_to or [])))

        task.updated_at = utcnow()
        return fragments

    async def _apply_assignees(self, task: Task, new_ids: List[str]) -> List[str]:
        old_ids = list(task.assigned_to or [])
        added = [uid for uid in new_ids if uid not in old_ids]
        removed = [uid for uid in old_ids if uid not in new_ids]
        if not added and not removed:
            return []

        names: Dict[str, str] = await self.directory.display_names(added + removed)
        fragments = []
        if added:
            fragments.append("Added members: " + ", ".join(names.get(uid, "Unknown") for uid in added))
        if removed:
            fragments.append("Removed members: " + ", ".join(names.get(uid, "Unknown") for uid in removed))
        task.assigned_to = new_ids
        return fragments
