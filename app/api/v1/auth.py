"""
Authentication API routes.
Handles registration, login and token refresh.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.dependencies import limiter
from app.schemas.user import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from app.services.user_service import UserService

router = APIRouter()

REGISTER_SUCCESS_MESSAGE = "註冊成功"


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
@limiter.limit("10/minute")
async def register(
    request: Request,
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Create an account.

    - **email**: Unique email address
    - **password**: At least 8 characters with a letter and a digit
    - **birth_date**: The user must be at least 18
    - **display_name**: Up to 50 characters
    - **gender**: male, female, non_binary or other
    """
    user = await UserService(db).register(
        email=data.email,
        password=data.password,
        birth_date=data.birth_date,
        display_name=data.display_name,
        gender=data.gender,
    )
    return RegisterResponse(message=REGISTER_SUCCESS_MESSAGE, user_id=user.id)


@router.post("/login", response_model=LoginResponse, summary="Log in with email and password")
@limiter.limit("20/minute")
async def login(
    request: Request,
    data: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange credentials for an access/refresh token pair."""
    return await UserService(db).login(data.email, data.password)


@router.post("/refresh", response_model=TokenResponse, summary="Refresh tokens")
async def refresh(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a refresh token for a new token pair."""
    return await UserService(db).refresh(data.refresh_token)
