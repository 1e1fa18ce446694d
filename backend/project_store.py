# project_store.py - Load and persist whole Project aggregates
import logging
from typing import List, Optional

from sqlalchemy import select, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from errors import StoreFailure
from models import Project, ProjectMember, Task, ActivityLog

logger = logging.getLogger("taskflow.store")


def _aggregate_options():
    return (
        selectinload(Project.member_links),
        selectinload(Project.tasks).selectinload(Task.activity_log),
    )


class ProjectStore:
    """Each save is a single commit covering the whole aggregate"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, project_id: str) -> Optional[Project]:
        stmt = select(Project).where(Project.id == project_id).options(*_aggregate_options())
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load project {project_id}: {e}")
            raise StoreFailure("Error loading project", cause=str(e)) from e
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str) -> List[Project]:
        """Projects the user created or belongs to, newest first"""
        member_of = select(ProjectMember.project_id).where(ProjectMember.user_id == user_id)
        stmt = (
            select(Project)
            .where(or_(Project.created_by == user_id, Project.id.in_(member_of)))
            .options(*_aggregate_options())
            .order_by(Project.created_at.desc())
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list projects for {user_id}: {e}")
            raise StoreFailure("Error fetching projects", cause=str(e)) from e
        return list(result.scalars().unique().all())

    def record(self, entry: ActivityLog) -> None:
        """Stage a log entry independently of its task's lifetime"""
        self.db.add(entry)

    async def save(self, project: Project) -> Project:
        self.db.add(project)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to save project {project.id}: {e}")
            raise StoreFailure("Error saving project", cause=str(e)) from e
        return project

    async def delete(self, project: Project) -> None:
        try:
            await self.db.delete(project)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to delete project {project.id}: {e}")
            raise StoreFailure("Error deleting project", cause=str(e)) from e
