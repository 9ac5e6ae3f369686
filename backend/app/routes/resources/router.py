import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse, HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession
from html import escape

from app.config.constants import PROVIDER_ROLES, Role
from app.core.middleware import get_db, get_current_user, require_roles
from app.db.crud.resource import (
    get_published_resources,
    create_resource,
    get_published_resource,
    get_like_status,
    toggle_like,
    increment_views,
    record_download,
)
from app.db.models.user import UserModel
from app.schemas.resource import (
    DownloadResponse,
    LikeStatus,
    Resource,
    ResourceCreate,
    ResourceIdRequest,
    ResourceListResponse,
    ResourceResponse,
)
from app.schemas.shared import MessageResponse
from app.services.storage import resolve_upload, guess_content_type

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources", tags=["resources"])

SERVE_PATH = "/api/resources/serve"


@router.get("", response_model=ResourceListResponse, dependencies=[Depends(get_current_user)])
async def list_resources(db: AsyncSession = Depends(get_db)):
    """Published resources, featured first"""
    return {"resources": await get_published_resources(db)}


@router.post("", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def add_resource(
    data: ResourceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(require_roles([*PROVIDER_ROLES, Role.ADMIN])),
):
    resource = await create_resource(
        db,
        current_user.id,
        title=data.title,
        description=data.description,
        content=data.content,
        category=data.category,
        type=data.type.value,
        url=data.url,
    )
    return ResourceResponse(resource=Resource.model_validate(resource), message="Resource published")


@router.get("/like", response_model=LikeStatus)
async def read_like(
    resource_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    return await get_like_status(db, current_user.id, resource_id)


@router.post("/like", response_model=LikeStatus)
async def like_resource(
    data: ResourceIdRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    return await toggle_like(db, current_user.id, data.resource_id)


@router.post("/view", response_model=MessageResponse, dependencies=[Depends(get_current_user)])
async def view_resource(data: ResourceIdRequest, db: AsyncSession = Depends(get_db)):
    await get_published_resource(db, data.resource_id)
    await increment_views(db, data.resource_id)
    return MessageResponse(message="View recorded")


@router.post("/download", response_model=DownloadResponse)
async def download_resource(
    data: ResourceIdRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    resource = await record_download(db, current_user.id, data.resource_id)
    if resource.file_path:
        download_url = f"{SERVE_PATH}?id={resource.id}"
    else:
        download_url = resource.url
    logger.info(f"Resource id={resource.id} downloaded by user_id={current_user.id}")
    return DownloadResponse(resource_id=resource.id, title=resource.title, download_url=download_url)


@router.get("/serve", dependencies=[Depends(get_current_user)])
async def serve_resource(id: int = Query(...), db: AsyncSession = Depends(get_db)):
    """Stream the uploaded file, or render the text content of file-less resources"""
    resource = await get_published_resource(db, id)
    title, file_path, content = resource.title, resource.file_path, resource.content

    # Only views that actually serve something are counted
    if file_path:
        path = resolve_upload(file_path)
        if path is None:
            logger.warning(f"File for resource id={id} missing on disk: {file_path}")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
        await increment_views(db, id)
        return FileResponse(
            path,
            media_type=guess_content_type(path),
            filename=f"{title}{path.suffix}",
            content_disposition_type="inline",
        )

    if not content:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource has no content")
    await increment_views(db, id)
    body ="".join(f"<p>{escape(line)}</p>" for line in content.splitlines() if line.strip())
    return HTMLResponse(
        f"<!DOCTYPE html><html><head><meta charset=\"utf-8\"><title>{escape(title)}</title></head>"
        f"<body><h1>{escape(title)}</h1>{body}</body></html>"
    )
