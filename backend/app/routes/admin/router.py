import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import Role
from app.core.middleware import get_db, require_roles
from app.db.crud.settings import get_settings, update_settings, reset_settings
from app.db.crud.user import create_user, generate_unique_username, get_all_users, get_user, update_user
from app.db.models.user import UserModel
from app.schemas.admin import (
    AdminUserCreate,
    AdminUserCreatedResponse,
    AdminUserListResponse,
    AdminUserUpdate,
    BackupCreatedResponse,
    BackupFileRequest,
    BackupListResponse,
    BackupRestoredResponse,
    Credentials,
    SettingsResponse,
)
from app.schemas.shared import MessageResponse, UserOut
from app.services import backup

logger = logging.getLogger(__name__)

admin_only = require_roles([Role.ADMIN])

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(admin_only)])


# ----------------------------------------------------------------------- users -----
@router.get("/users", response_model=AdminUserListResponse)
async def list_users(db: AsyncSession = Depends(get_db)):
    return {"users": await get_all_users(db)}


@router.post("/users", response_model=AdminUserCreatedResponse, status_code=status.HTTP_201_CREATED)
async def add_user(data: AdminUserCreate, db: AsyncSession = Depends(get_db)):
    """Create an account of any role; the username is derived from the name"""
    username = await generate_unique_username(db, data.name, data.email)
    user = await create_user(
        db,
        username=username,
        email=data.email,
        password=data.temp_password,
        full_name=data.name,
        role=data.role.value,
        is_active=data.status == "active",
    )
    return AdminUserCreatedResponse(
        user=UserOut.model_validate(user),
        credentials=Credentials(username=user.username, temp_password=data.temp_password),
        message="User created",
    )


@router.put("/users", response_model=UserOut)
async def edit_user(data: AdminUserUpdate, db: AsyncSession = Depends(get_db)):
    user = await get_user(db, data.id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    user = await update_user(
        db,
        user,
        full_name=data.name,
        email=data.email,
        role=data.role.value,
        is_active=data.status == "active",
    )
    logger.info(f"User id={user.id} updated: role={user.role} active={user.is_active}")
    return user


# -------------------------------------------------------------------- settings -----
@router.get("/settings", response_model=SettingsResponse)
async def read_settings(db: AsyncSession = Depends(get_db)):
    return {"settings": await get_settings(db)}


@router.put("/settings", response_model=SettingsResponse)
async def save_settings(
    values: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(admin_only),
):
    return {"settings": await update_settings(db, values, current_user.id), "message": "Settings updated"}


@router.post("/settings", response_model=SettingsResponse)
async def restore_default_settings(
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(admin_only),
):
    return {"settings": await reset_settings(db, current_user.id), "message": "Settings reset to defaults"}


# ---------------------------------------------------------------------- backup -----
@router.get("/backup", response_model=BackupListResponse)
async def list_backups():
    return {"backups": backup.list_backups()}


@router.post("/backup", response_model=BackupCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_backup(db: AsyncSession = Depends(get_db)):
    path, counts = await backup.create_backup(db)
    return {"backup": backup.describe(path), "tables": counts, "message": "Backup created"}


@router.put("/backup", response_model=BackupRestoredResponse)
async def restore_backup(data: BackupFileRequest, db: AsyncSession = Depends(get_db)):
    path = backup.resolve_backup(data.filename)
    counts = await backup.restore_backup(db, path)
    return {"filename": path.name, "tables": counts, "message": "Backup restored"}


@router.delete("/backup", response_model=MessageResponse)
async def delete_backup(data: BackupFileRequest):
    path = backup.resolve_backup(data.filename)
    path.unlink()
    logger.info(f"Backup {path.name} deleted")
    return MessageResponse(message="Backup deleted")


@router.get("/backup/download")
async def download_backup(filename: str = Query(...)):
    path = backup.resolve_backup(filename)
    return FileResponse(path, media_type="application/json", filename=path.name)
