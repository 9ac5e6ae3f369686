from __future__ import annotations
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra='forbid')

    # username, or email when it contains "@"
    identifier: Annotated[str, Field(min_length=1, max_length=100)]
    password: Annotated[str, Field(min_length=1, max_length=128)]

    @property
    def is_email(self) -> bool:
        return "@" in self.identifier
