# app/schemas/admin.py
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

from app.config.constants import Role
from app.schemas.shared import UserOut

UserStatus = Literal["active", "inactive"]


class AdminUserCreate(BaseModel):
    name: Annotated[str, Field(min_length=1, max_length=100)]
    email: EmailStr
    role: Role
    status: UserStatus = "active"
    temp_password: Annotated[str, Field(min_length=6, max_length=128)]


class AdminUserUpdate(BaseModel):
    id: int
    name: Annotated[str, Field(min_length=1, max_length=100)]
    email: EmailStr
    role: Role
    status: UserStatus


class AdminUserListResponse(BaseModel):
    users: List[UserOut]


class Credentials(BaseModel):
    username: str
    temp_password: str


class AdminUserCreatedResponse(BaseModel):
    user: UserOut
    credentials: Credentials
    message: str


class SettingsResponse(BaseModel):
    settings: Dict[str, Any]
    message: Optional[str] = None


class BackupFile(BaseModel):
    filename: str
    size: int
    created_at: datetime


class BackupListResponse(BaseModel):
    backups: List[BackupFile]


class BackupFileRequest(BaseModel):
    filename: Annotated[str, Field(min_length=1, max_length=255)]


class BackupCreatedResponse(BaseModel):
    backup: BackupFile
    tables: Dict[str, int]
    message: str


class BackupRestoredResponse(BaseModel):
    filename: str
    tables: Dict[str, int]
    message: str


class AnalyticsResponse(BaseModel):
    users: Dict[str, int]
    appointments: Dict[str, int]
    resources: int
    community_posts: int
    mood_entries: int
    messages: int
