# app/db/crud/resource.py
import logging
from typing import List, Optional, Dict, Any

from fastapi import HTTPException, status
from sqlalchemy import select, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.resource import ResourceModel, ResourceLikeModel, ResourceDownloadModel
from app.db.models.user import UserModel
from app.schemas.resource import ResourceUpdate

logger = logging.getLogger(__name__)


def _resource_dict(resource: ResourceModel) -> Dict[str, Any]:
    return {column.name: getattr(resource, column.name) for column in ResourceModel.__table__.columns}


async def _with_stats(db: AsyncSession, query) -> List[Dict[str, Any]]:
    like_counts = (
        select(ResourceLikeModel.resource_id, func.count(ResourceLikeModel.id).label("likes"))
        .group_by(ResourceLikeModel.resource_id)
        .subquery()
    )
    query = (
        query.add_columns(UserModel.full_name, func.coalesce(like_counts.c.likes, 0))
        .outerjoin(UserModel, ResourceModel.author_id == UserModel.id)
        .outerjoin(like_counts, like_counts.c.resource_id == ResourceModel.id)
    )
    result = await db.execute(query)
    resources = []
    for resource, author_name, likes in result.all():
        row = _resource_dict(resource)
        row["author_name"] = author_name
        row["likes"] = likes
        resources.append(row)
    return resources


async def get_published_resources(db: AsyncSession) -> List[Dict[str, Any]]:
    """Published resources, featured first, then newest, with author name and like count."""
    query = (
        select(ResourceModel)
        .where(ResourceModel.is_published.is_(True))
        .order_by(ResourceModel.is_featured.desc(), ResourceModel.created_at.desc(), ResourceModel.id.desc())
    )
    return await _with_stats(db, query)


async def get_author_resources(
    db: AsyncSession, author_id: int, type_filter: Optional[str] = None, category: Optional[str] = None
) -> List[Dict[str, Any]]:
    query = (
        select(ResourceModel)
        .where(ResourceModel.author_id == author_id)
        .order_by(ResourceModel.created_at.desc(), ResourceModel.id.desc())
    )
    if type_filter and type_filter != "all":
        query = query.where(ResourceModel.type == type_filter.lower())
    if category and category != "all":
        query = query.where(ResourceModel.category == category)
    return await _with_stats(db, query)


async def create_resource(db: AsyncSession, author_id: int, **fields) -> ResourceModel:
    resource = ResourceModel(author_id=author_id, is_published=True, **fields)
    db.add(resource)
    await db.commit()
    await db.refresh(resource)
    logger.info(f"Resource id={resource.id} '{resource.title}' published by user_id={author_id}")
    return resource


async def get_published_resource(db: AsyncSession, resource_id: int) -> ResourceModel:
    """
    Raises:
        HTTPException: 404 when missing or unpublished
    """
    resource = await db.get(ResourceModel, resource_id)
    if not resource or not resource.is_published:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found")
    return resource


async def get_own_resource(db: AsyncSession, author_id: int, resource_id: int) -> ResourceModel:
    resource = await db.get(ResourceModel, resource_id)
    if not resource or resource.author_id != author_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found")
    return resource


async def update_resource(db: AsyncSession, author_id: int, data: ResourceUpdate) -> ResourceModel:
    resource = await get_own_resource(db, author_id, data.resource_id)
    changes = data.model_dump(exclude={"resource_id"}, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nothing to update")
    for field, value in changes.items():
        setattr(resource, field, value.value if hasattr(value, "value") else value)
    await db.commit()
    await db.refresh(resource)
    logger.info(f"Resource id={resource.id} updated by user_id={author_id}: {', '.join(changes)}")
    return resource


async def delete_resource(db: AsyncSession, author_id: int, resource_id: int) -> Optional[str]:
    """Delete an owned resource; returns its stored file name, if any."""
    resource = await get_own_resource(db, author_id, resource_id)
    file_path = resource.file_path
    await db.delete(resource)
    await db.commit()
    logger.info(f"Resource id={resource_id} deleted by user_id={author_id}")
    return file_path


async def count_likes(db: AsyncSession, resource_id: int) -> int:
    return await db.scalar(
        select(func.count(ResourceLikeModel.id)).where(ResourceLikeModel.resource_id == resource_id)
    )


async def get_like_status(db: AsyncSession, user_id: int, resource_id: int) -> Dict[str, Any]:
    await get_published_resource(db, resource_id)
    liked = await db.scalar(
        select(func.count(ResourceLikeModel.id)).where(
            ResourceLikeModel.resource_id == resource_id, ResourceLikeModel.user_id == user_id
        )
    )
    return {"is_liked": liked > 0, "total_likes": await count_likes(db, resource_id)}


async def toggle_like(db: AsyncSession, user_id: int, resource_id: int) -> Dict[str, Any]:
    """Like the resource, or remove the like when the user already liked it."""
    await get_published_resource(db, resource_id)
    existing = (
        await db.execute(
            select(ResourceLikeModel).where(
                ResourceLikeModel.resource_id == resource_id, ResourceLikeModel.user_id == user_id
            )
        )
    ).scalar_one_or_none()

    if existing:
        await db.delete(existing)
        is_liked = False
    else:
        db.add(ResourceLikeModel(resource_id=resource_id, user_id=user_id))
        is_liked = True
    try:
        await db.commit()
    except IntegrityError:
        # concurrent like by the same user already landed
        await db.rollback()
        is_liked = True
    return {"is_liked": is_liked, "total_likes": await count_likes(db, resource_id)}


async def increment_views(db: AsyncSession, resource_id: int) -> None:
    await db.execute(
        update(ResourceModel)
        .where(ResourceModel.id == resource_id)
        .values(views=ResourceModel.views + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()


async def record_download(db: AsyncSession, user_id: int, resource_id: int) -> ResourceModel:
    resource = await get_published_resource(db, resource_id)
    db.add(ResourceDownloadModel(resource_id=resource_id, user_id=user_id))
    await db.execute(
        update(ResourceModel)
        .where(ResourceModel.id == resource_id)
        .values(downloads=ResourceModel.downloads + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(resource)
    return resource
