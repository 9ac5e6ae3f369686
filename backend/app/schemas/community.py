# app/schemas/community.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class CommunityPostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    category: str = Field(min_length=1, max_length=50)
    is_anonymous: bool = False


class CommunityPost(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    content: str
    category: str
    is_anonymous: bool
    status: str
    moderated_by: Optional[int] = None
    moderated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CommunityPostWithAuthor(CommunityPost):
    author_name: Optional[str] = None
    author_role: Optional[str] = None
    author_username: Optional[str] = None


class CommunityPostListResponse(BaseModel):
    posts: List[CommunityPostWithAuthor]


class CommunityPostResponse(BaseModel):
    post: CommunityPost
    message: str


class ModerationAction(BaseModel):
    post_id: int
    action: Literal["approve", "reject"]
    reason: Optional[str] = None


class PostEdit(BaseModel):
    post_id: int
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
