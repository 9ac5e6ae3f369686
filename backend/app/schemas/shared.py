# app/schemas/shared.py
from datetime import datetime, date
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr

from app.config.constants import Role


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: EmailStr
    full_name: str
    role: Role
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class UserSummary(BaseModel):
    """Just enough of a user to render a name next to a record."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    role: Role


class MessageResponse(BaseModel):
    message: str
