"""
Authentication endpoints: register, login, logout, current user
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.error_codes import INVALID_CREDENTIALS
from app.core.exceptions import CustomHTTPException
from app.core.security import (
    create_access_token,
    get_current_user,
    get_password_hash,
    token_expiry,
    verify_password,
)
from app.crud.user import create_user, get_user_by_email_or_username
from app.db.database import get_db
from app.models.user import User
from app.schemas.auth import AuthResponse, LoginRequest, Token
from app.schemas.common import ApiResponse
from app.schemas.user import UserCreate, UserRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


def _issue_token(user: User) -> AuthResponse:
    expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return AuthResponse(
        access_token=create_access_token(str(user.id), expires_delta=expires_delta),
        expires_at=token_expiry(expires_delta),
        user=UserRead.model_validate(user),
    )


async def _authenticate(db: AsyncSession, identifier: str, password: str) -> User:
    user = await get_user_by_email_or_username(db, identifier)
    if not user or not verify_password(password, user.hashed_password):
        logger.warning(f"Failed login attempt for: {identifier}")
        raise CustomHTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            error_code=INVALID_CREDENTIALS,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


@router.post("/register", response_model=ApiResponse[AuthResponse], status_code=status.HTTP_201_CREATED)
async def register(
    user_in: UserCreate,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """Create an account, hash the password and sign the new user in"""
    hashed_password = get_password_hash(user_in.password)
    user = await create_user(db, user_in, hashed_password)
    logger.info(f"Registered user {user.id} ({user.username})")

    auth = _issue_token(user)
    _set_auth_cookie(response, auth.access_token)
    return ApiResponse(message="User registered successfully", data=auth)


@router.post("/login", response_model=ApiResponse[AuthResponse])
async def login(
    credentials: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """Sign in with email or username"""
    user = await _authenticate(db, credentials.identifier, credentials.password)
    auth = _issue_token(user)
    _set_auth_cookie(response, auth.access_token)
    return ApiResponse(message="Login successful", data=auth)


@router.post("/token", response_model=Token, include_in_schema=True)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db)
):
    """OAuth2 password flow used by the interactive docs"""
    user = await _authenticate(db, form_data.username, form_data.password)
    auth = _issue_token(user)
    return Token(access_token=auth.access_token, expires_at=auth.expires_at)


@router.post("/logout", response_model=ApiResponse[None])
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user)
):
    response.delete_cookie(
        key=settings.AUTH_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )
    logger.info(f"User {current_user.id} logged out")
    return ApiResponse(message="Logged out successfully")


@router.get("/me", response_model=ApiResponse[UserRead])
async def read_current_user(current_user: User = Depends(get_current_user)):
    return ApiResponse(message="Current user", data=UserRead.model_validate(current_user))
