# models.py - Database models for Taskflow
# - UUID string primary keys everywhere
# - Project aggregate owns its members and an ordered task mapping
# - Task activity log is append-only and outlives the task it describes

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, String, DateTime, Date, JSON, Integer,
    Enum as SQLEnum, ForeignKey, Text, Index,
)
from sqlalchemy.orm import declarative_base, relationship, attribute_keyed_dict

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


def as_utc(dt):
    # SQLite hands back naive datetimes
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt



# ============================================================
# ENUMS
# ============================================================

class TaskStatus(str, PyEnum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    STUCK = "Stuck"
    DONE = "Done"


class TaskPriority(str, PyEnum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TaskType(str, PyEnum):
    TASK = "task"
    BUG = "bug"


# ============================================================
# USERS
# ============================================================

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_uuid)
    username = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=False, default="")
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


# ============================================================
# PROJECTS
# ============================================================

class Project(Base):
    """Top-level aggregate: members plus an ordered task mapping"""
    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=new_uuid)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    created_by = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    member_links = relationship(
        "ProjectMember",
        order_by="ProjectMember.position",
        cascade="all, delete-orphan",
    )
    # task id -> Task, in creation order
    tasks = relationship(
        "Task",
        collection_class=attribute_keyed_dict("id"),
        order_by="Task.position",
        cascade="all, delete-orphan",
    )

    @property
    def member_ids(self):
        return [m.user_id for m in self.member_links]

    def add_member(self, user_id: str) -> bool:
        """Append a member; returns False when already present"""
        if user_id in self.member_ids:
            return False
        self.member_links.append(ProjectMember(
            user_id=user_id,
            position=len(self.member_links),
            added_at=utcnow(),
        ))
        return True

    def add_task(self, task: "Task") -> None:
        task.position = max((t.position or 0 for t in self.tasks.values()), default=0) + 1
        self.tasks[task.id] = task

    def remove_task(self, task_id: str) -> "Task":
        return self.tasks.pop(task_id)


class ProjectMember(Base):
    __tablename__ = "project_members"

    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), primary_key=True, index=True)
    position = Column(Integer, nullable=False, default=0)
    added_at = Column(DateTime(timezone=True), default=utcnow)


# ============================================================
# TASKS
# ============================================================

class Task(Base):
    """A unit of work embedded in a project"""
    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=new_uuid)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)  # Creation order within the project

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    task_type = Column(SQLEnum(TaskType), nullable=False, default=TaskType.TASK)
    status = Column(SQLEnum(TaskStatus), nullable=False, default=TaskStatus.NOT_STARTED, index=True)
    priority = Column(SQLEnum(TaskPriority), nullable=False, default=TaskPriority.NONE)

    # Timeline
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    # Assignment
    assigned_to = Column(JSON, nullable=False, default=list)  # Ordered list of user IDs
    created_by = Column(String, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Log rows keep their task_id after the task is gone
    activity_log = relationship(
        "ActivityLog",
        primaryjoin="Task.id == foreign(ActivityLog.task_id)",
        order_by="ActivityLog.sequence",
        passive_deletes="all",
    )

    __table_args__ = (
        Index("idx_task_project_pos", "project_id", "position"),
    )


class ActivityLog(Base):
    """Append-only audit trail entry for a task"""
    __tablename__ = "activity_logs"

    id = Column(String, primary_key=True, default=new_uuid)
    project_id = Column(String, nullable=False, index=True)
    task_id = Column(String, nullable=False, index=True)
    action = Column(Text, nullable=False)
    performed_by = Column(String, nullable=False)
    sequence = Column(Integer, nullable=False, default=0)  # Tie-breaker for equal timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("idx_activity_task_time", "task_id", "created_at"),
    )
