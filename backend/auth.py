# auth.py - Credentials and bearer tokens
# Tokens are HS256 JWTs whose "sub" is the user id; passwords are bcrypt hashes.

import os
import uuid
import secrets
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

import bcrypt
from jose import jwt, JWTError, ExpiredSignatureError
from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db_session
from directory import UserDirectory
from errors import ValidationError
from models import User, new_uuid, utcnow

logger = logging.getLogger("taskflow.auth")

JWT_ALGORITHM = "HS256"
JWT_SECRET = os.getenv("JWT_SECRET_KEY") or ""
if not JWT_SECRET:
    JWT_SECRET = secrets.token_urlsafe(64)
    logger.warning("JWT_SECRET_KEY not set; tokens are signed with a per-process key")

TOKEN_TTL_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
MIN_PASSWORD_LENGTH = 8

bearer_scheme = HTTPBearer()


class UserRegister(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str
    display_name: str = ""

    @field_validator("username")
    @classmethod
    def username_has_no_spaces(cls, v: str) -> str:
        v = v.strip()
        if any(c.isspace() for c in v):
            raise ValueError("Username must not contain whitespace")
        return v

    @field_validator("password")
    @classmethod
    def password_long_enough(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class UserLogin(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: Dict[str, Any]


class CurrentUser(BaseModel):
    """The authenticated caller, as seen by route handlers"""
    id: str
    username: str
    email: str
    display_name: str

    @classmethod
    def from_user(cls, user: User) -> "CurrentUser":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            display_name=user.display_name or user.username,
        )


class AuthService:

    @staticmethod
    def hash_password(password: str) -> str:
        hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
        return hashed.decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return False

    @staticmethod
    def create_access_token(claims: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        issued = datetime.now(timezone.utc)
        payload = {
            **claims,
            "type": "access",
            "iat": issued,
            "exp": issued + (expires_delta or timedelta(minutes=TOKEN_TTL_MINUTES)),
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """Claims of a valid access token; 401 otherwise"""
        try:
            claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        except ExpiredSignatureError:
            raise HTTPException(status_code=401, detail="Token expired")
        except JWTError:
            raise HTTPException(status_code=401, detail="Authentication failed")
        if claims.get("type") != "access" or not claims.get("sub"):
            raise HTTPException(status_code=401, detail="Invalid token")
        return claims

    @staticmethod
    def build_token_response(user: User) -> TokenResponse:
        token = AuthService.create_access_token({"sub": user.id, "username": user.username})
        return TokenResponse(
            access_token=token,
            expires_in=TOKEN_TTL_MINUTES * 60,
            user=CurrentUser.from_user(user).model_dump(),
        )

    @staticmethod
    async def register_user(data: UserRegister, db: AsyncSession) -> User:
        clash = await db.execute(
            select(User.id).where(or_(User.username == data.username, User.email == data.email))
        )
        if clash.first() is not None:
            raise ValidationError("Username or email already exists")

        now = utcnow()
        user = User(
            id=new_uuid(),
            username=data.username,
            email=data.email,
            display_name=data.display_name.strip() or data.username,
            password_hash=AuthService.hash_password(data.password),
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        await db.commit()
        logger.info(f"User {user.username} registered as {user.id}")
        return user

    @staticmethod
    async def authenticate_user(username: str, password: str, db: AsyncSession) -> Optional[User]:
        user = await UserDirectory(db).find_by_username(username)
        if user is None or not AuthService.verify_password(password, user.password_hash):
            logger.info(f"Rejected login for {username}")
            return None
        return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> CurrentUser:
    """Resolve the bearer token to a user that still exists"""
    claims = AuthService.decode_token(credentials.credentials)
    user = await UserDirectory(db).find_by_id(claims["sub"])
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return CurrentUser.from_user(user)
