# app/routers/auth_router.py
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.services.auth_service import AuthService
from app.schemas.common_schema import ApiResponse
from app.schemas.user_schema import (
    AuthPayload, PasswordChange, ProfileUpdate, UserCreate, UserLogin,
    UserOut, UserPayload, UsernameAvailability,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Auth"]
)


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(db)


@router.post(
    "/register",
    response_model=ApiResponse[AuthPayload],
    status_code=status.HTTP_201_CREATED,
)
async def register_new_user(
    user_data: UserCreate,
    service: AuthService = Depends(get_auth_service),
):
    """
    Register a client or freelancer and log them in.

    - Email or phone is required, password at least 8 characters.
    """
    new_user = await service.register_user(user_data)
    return ApiResponse(
        message="User registered successfully",
        data=AuthPayload(user=UserOut.model_validate(new_user), token=service.create_login_token(new_user)),
    )


@router.post("/login", response_model=ApiResponse[AuthPayload])
async def login(
    credentials: UserLogin,
    service: AuthService = Depends(get_auth_service),
):
    """Log in with email or phone. `role`, when sent, must match the account."""
    user = await service.login(credentials)
    return ApiResponse(
        message="Login successful",
        data=AuthPayload(user=UserOut.model_validate(user), token=service.create_login_token(user)),
    )


@router.get("/me", response_model=ApiResponse[UserPayload])
async def read_users_me(
    current_user: User = Depends(get_current_user)
):
    """Current user, without the password hash"""
    return ApiResponse(data=UserPayload(user=UserOut.model_validate(current_user)))


@router.put("/profile", response_model=ApiResponse[UserPayload])
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    user = await service.update_profile(current_user, profile_data)
    return ApiResponse(
        message="Profile updated successfully",
        data=UserPayload(user=UserOut.model_validate(user)),
    )


@router.put("/change-password", response_model=ApiResponse[None])
async def change_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    await service.change_password(current_user, password_data)
    return ApiResponse(message="Password changed successfully")


@router.get("/username/{username}", response_model=ApiResponse[UsernameAvailability])
async def check_username(
    username: str,
    service: AuthService = Depends(get_auth_service),
):
    available = await service.is_username_available(username)
    return ApiResponse(data=UsernameAvailability(username=username, available=available))
