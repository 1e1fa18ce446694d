# routers/auth.py - Registration, login and current-user endpoints
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from auth import (
    AuthService, UserRegister, UserLogin, TokenResponse,
    get_current_user, CurrentUser,
)
from database import get_db_session

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db_session),
):
    """Register a new user account"""
    user = await AuthService.register_user(user_data, db)
    return AuthService.build_token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db_session),
):
    """Authenticate and receive a bearer token"""
    user = await AuthService.authenticate_user(credentials.username, credentials.password, db)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return AuthService.build_token_response(user)


@router.get("/me", response_model=CurrentUser)
async def get_current_user_info(user: CurrentUser = Depends(get_current_user)):
    return user
