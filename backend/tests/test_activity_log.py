# tests/test_activity_log.py - Append semantics and paginated history
from datetime import datetime, timedelta, timezone

import pytest

from activity_log import ActivityLogger, parse_page
from models import Task, TaskStatus
from tests.conftest import FakeDirectory


def make_task() -> Task:
    return Task(id="t1", project_id="p1", title="Ship it", status=TaskStatus.NOT_STARTED,
                assigned_to=["u1"], created_by="u1")


@pytest.fixture
def activity():
    return ActivityLogger(FakeDirectory({"u1": "Alice", "u2": "Bob"}))


def test_append_joins_fragments(activity):
    task = make_task()
    entry = activity.append(task, ["Added members: Bob", "Removed members: Alice"], "u1")
    assert entry.action == "Added members: Bob. Removed members: Alice"
    assert entry.performed_by == "u1"
    assert entry.task_id == "t1"
    assert entry.project_id == "p1"
    assert task.activity_log == [entry]


def test_append_without_fragments_is_noop(activity):
    task = make_task()
    assert activity.append(task, [], "u1") is None
    assert task.activity_log == []


def test_sequence_increases_with_each_append(activity):
    task = make_task()
    first = activity.append(task, ["one"], "u1")
    second = activity.append(task, ["two"], "u1")
    assert second.sequence == first.sequence + 1


@pytest.mark.asyncio
async def test_pagination_over_twelve_entries(activity):
    task = make_task()
    base = datetime(2024, 6, 1, tzinfo=timezone.utc)
    for i in range(12):
        entry = activity.append(task, [f"change {i}"], "u1")
        entry.created_at = base + timedelta(minutes=i)

    first = await activity.get_page(task, 1)
    assert first.total_logs == 12
    assert first.total_pages == 3
    assert first.current_page == 1
    assert [log.action for log in first.logs] == [f"change {i}" for i in (11, 10, 9, 8, 7)]

    last = await activity.get_page(task, 3)
    assert [log.action for log in last.logs] == ["change 1", "change 0"]

    beyond = await activity.get_page(task, 4)
    assert beyond.logs == []
    assert beyond.total_pages == 3


@pytest.mark.asyncio
async def test_timestamp_ties_break_by_insertion_order(activity):
    task = make_task()
    same = datetime(2024, 6, 1, tzinfo=timezone.utc)
    for name in ("first", "second", "third"):
        activity.append(task, [name], "u1").created_at = same

    page = await activity.get_page(task, 1)
    assert [log.action for log in page.logs] == ["third", "second", "first"]


@pytest.mark.asyncio
async def test_performer_names_resolved_or_fall_back_to_id(activity):
    task = make_task()
    activity.append(task, ["by alice"], "u1")
    activity.append(task, ["by ghost"], "gone-user")

    page = await activity.get_page(task, 1)
    performers = {log.action: log.performed_by for log in page.logs}
    assert performers["by alice"].name == "Alice"
    assert performers["by ghost"].id == "gone-user"
    assert performers["by ghost"].name == "gone-user"


@pytest.mark.asyncio
async def test_empty_history(activity):
    page = await activity.get_page(make_task(), 1)
    assert page.total_logs == 0
    assert page.total_pages == 0
    assert page.logs == []


@pytest.mark.parametrize("raw,expected", [
    (None, 1), ("", 1), ("abc", 1), ("0", 1), ("-3", 1), ("2", 2), (3, 3),
])
def test_parse_page(raw, expected):
    assert parse_page(raw) == expected
