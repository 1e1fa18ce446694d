# activity_log.py - Attributed, append-only task history with paginated reads
import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from pydantic import BaseModel

from directory import UserRef
from models import ActivityLog, Task, new_uuid, utcnow, as_utc

PAGE_SIZE = 5
FRAGMENT_SEPARATOR = ". "


class LogOut(BaseModel):
    id: str
    action: str
    performed_by: UserRef
    timestamp: str


class ActivityPage(BaseModel):
    logs: List[LogOut] = []
    current_page: int
    total_pages: int
    total_logs: int


def parse_page(raw) -> int:
    """Page numbers start at 1; anything unusable falls back to 1"""
    try:
        page = int(raw)
    except (TypeError, ValueError):
        return 1
    return page if page > 0 else 1


def _sort_time(dt: Optional[datetime]) -> datetime:
    return as_utc(dt) if dt else datetime.min.replace(tzinfo=timezone.utc)


class ActivityLogger:
    """Never mutates or removes an entry once appended"""

    def __init__(self, directory):
        self.directory = directory

    def append(self, task: Task, fragments: Sequence[str], user_id: str) -> Optional[ActivityLog]:
        action = FRAGMENT_SEPARATOR.join(f for f in fragments if f)
        if not action:
            return None

        entries = task.activity_log
        entry = ActivityLog(
            id=new_uuid(),
            project_id=task.project_id,
            task_id=task.id,
            action=action,
            performed_by=user_id,
            sequence=max((e.sequence or 0 for e in entries), default=0) + 1,
            created_at=utcnow(),
        )
        entries.append(entry)
        return entry

    async def get_page(self, task: Task, page: int = 1, page_size: int = PAGE_SIZE) -> ActivityPage:
        page = parse_page(page)
        ordered = sorted(
            task.activity_log,
            key=lambda e: (_sort_time(e.created_at), e.sequence or 0),
            reverse=True,
        )
        total = len(ordered)
        window = ordered[(page - 1) * page_size: page * page_size]

        names = await self.directory.display_names(e.performed_by for e in window)
        logs = [
            LogOut(
                id=e.id,
                action=e.action,
                performed_by=UserRef(
                    id=e.performed_by,
                    name=names.get(e.performed_by, e.performed_by),
                ),
                timestamp=as_utc(e.created_at).isoformat(),
            )
            for e in window
        ]
        return ActivityPage(
            logs=logs,
            current_page=page,
            total_pages=math.ceil(total / page_size),
            total_logs=total,
        )
