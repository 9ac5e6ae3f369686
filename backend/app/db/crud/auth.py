# app/db/crud/auth.py
import logging
from typing import Optional

from fastapi import HTTPException, status
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import Role
from app.core.auth import verify_password, decode_access_token, create_tokens_for_user, REFRESH_TOKEN_TYPE
from app.db.crud.settings import get_setting
from app.db.crud.user import (
    create_user,
    generate_unique_username,
    get_user,
    get_user_by_email,
    get_user_by_username,
    set_password,
)
from app.db.models.user import UserModel
from app.schemas.auth_response import AuthResponse
from app.schemas.login_request import LoginRequest
from app.schemas.register_request import RegisterRequest, ChangePasswordRequest

logger = logging.getLogger(__name__)


async def register_patient(db: AsyncSession, data: RegisterRequest) -> UserModel:
    """
    Self-registration of a patient account.

    Raises:
        HTTPException: 403 when registration is switched off, 409 on duplicate email
    """
    if not await get_setting(db, "user_registration"):
        logger.warning(f"Registration attempt for {data.email} while registration is disabled")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User registration is currently disabled")

    if await get_user_by_email(db, data.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    username = await generate_unique_username(db, data.name, data.email)
    return await create_user(
        db,
        username=username,
        email=data.email,
        password=data.password,
        full_name=data.name,
        role=Role.PATIENT.value,
        phone=data.phone,
        date_of_birth=data.date_of_birth,
    )


async def authenticate_user(db: AsyncSession, login_data: LoginRequest) -> Optional[UserModel]:
    if login_data.is_email:
        user = await get_user_by_email(db, login_data.identifier)
    else:
        user = await get_user_by_username(db, login_data.identifier)
    if not user:
        logger.info(f"Login failed: unknown identifier {login_data.identifier}")
        return None
    if not user.is_active:
        logger.info(f"Login refused for inactive user id={user.id}")
        return None
    if not verify_password(login_data.password, user.password_hash):
        logger.info(f"Login failed: wrong password for user id={user.id}")
        return None
    return user


async def refresh_user_token(db: AsyncSession, refresh_token: Optional[str]) -> AuthResponse:
    """Refreshes user tokens using a refresh token."""
    if not refresh_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing refresh token")
    try:
        payload = decode_access_token(refresh_token)
        user_id = int(payload["sub"])
    except (JWTError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")
    if payload.get("type") != REFRESH_TOKEN_TYPE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    user = await get_user(db, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")

    return create_tokens_for_user(user)


async def change_password(db: AsyncSession, user: UserModel, data: ChangePasswordRequest) -> None:
    if not verify_password(data.current_password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    await set_password(db, user, data.new_password)
