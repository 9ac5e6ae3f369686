from __future__ import annotations
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.schemas.shared import UserOut

class TokenType(Enum):
    bearer = 'bearer'

class AuthResponse(BaseModel):
    model_config = ConfigDict(
        extra='forbid',
    )
    access_token: str
    refresh_token: str
    token_type: TokenType
    expires_in: int
    user: Optional[UserOut] = None

class RegisterResponse(BaseModel):
    user: UserOut
    message: str
