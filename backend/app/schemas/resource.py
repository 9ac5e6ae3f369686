# app/schemas/resource.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.config.constants import ResourceType


class ResourceCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    content: Optional[str] = None
    category: str = Field(min_length=1, max_length=50)
    type: ResourceType
    url: Optional[str] = None


class ResourceUpdate(BaseModel):
    resource_id: int
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    type: Optional[ResourceType] = None
    category: Optional[str] = None
    content: Optional[str] = None
    url: Optional[str] = None


class Resource(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    type: str
    url: Optional[str] = None
    file_path: Optional[str] = None
    author_id: Optional[int] = None
    is_published: bool
    is_featured: bool
    views: int
    downloads: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ResourceWithStats(Resource):
    author_name: Optional[str] = None
    likes: int = 0


class ResourceListResponse(BaseModel):
    resources: List[ResourceWithStats]


class ResourceResponse(BaseModel):
    resource: Resource
    message: Optional[str] = None


class ResourceIdRequest(BaseModel):
    resource_id: int


class LikeStatus(BaseModel):
    is_liked: bool
    total_likes: int


class DownloadResponse(BaseModel):
    resource_id: int
    title: str
    download_url: Optional[str] = None
