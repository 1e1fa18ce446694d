# routers/users.py - User lookup for member invitation and name display
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, CurrentUser
from database import get_db_session
from directory import UserDirectory
from errors import NotFoundError

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


class UserSummary(BaseModel):
    id: str
    username: str


@router.get("/check/{username}", response_model=bool)
async def check_username(
    username: str,
    db: AsyncSession = Depends(get_db_session),
):
    """Public: whether a username is already taken"""
    return await UserDirectory(db).find_by_username(username) is not None


@router.get("", response_model=List[UserSummary])
async def list_users(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    users = await UserDirectory(db).list_users()
    return [UserSummary(id=u.id, username=u.username) for u in users]


@router.get("/{user_id}", response_model=UserSummary)
async def get_user(
    user_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    found = await UserDirectory(db).find_by_id(user_id)
    if not found:
        raise NotFoundError("User not found")
    return UserSummary(id=found.id, username=found.username)
