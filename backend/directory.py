# directory.py - User directory: display-name resolution and username lookup
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import User

UNKNOWN_USER = "Unknown"


class UserRef(BaseModel):
    id: str
    name: str


class UserDirectory:
    """Read-only view over the users table"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def list_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.username.asc()))
        return list(result.scalars().all())

    async def display_names(self, user_ids: Iterable[str]) -> Dict[str, str]:
        """Resolve many ids in one query; ids that don't resolve are absent"""
        ids = {uid for uid in user_ids if uid}
        if not ids:
            return {}
        result = await self.db.execute(
            select(User.id, User.display_name, User.username).where(User.id.in_(ids))
        )
        return {uid: dn or un for uid, dn, un in result.all()}

    async def resolve_display_name(self, user_id: str) -> str:
        names = await self.display_names([user_id])
        return names.get(user_id, UNKNOWN_USER)

    async def refs(self, user_ids: Iterable[str]) -> List[UserRef]:
        """Identity references in input order; unresolvable ids are named "Unknown" """
        ids = list(user_ids)
        names = await self.display_names(ids)
        return [UserRef(id=uid, name=names.get(uid, UNKNOWN_USER)) for uid in ids]
