# app/schemas/register_request.py
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing    import Annotated, Optional
from datetime  import date


class RegisterRequest(BaseModel):
    """Patient self-registration."""
    name:          Annotated[str, Field(min_length=1, max_length=100)]
    email:         EmailStr
    password:      Annotated[str, Field(min_length=6, max_length=128)]
    phone:         Annotated[str, Field(min_length=1, max_length=30)]
    date_of_birth: date

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class ChangePasswordRequest(BaseModel):
    current_password: Annotated[str, Field(min_length=1)]
    new_password:     Annotated[str, Field(min_length=6, max_length=128)]


class ProfileUpdateRequest(BaseModel):
    name:          Annotated[str, Field(min_length=1, max_length=100)]
    email:         EmailStr
    phone:         Optional[str] = None
    date_of_birth: Optional[date] = None
