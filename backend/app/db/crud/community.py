# app/db/crud/community.py
import logging
from datetime import datetime, timezone
from typing import List, Dict, Any

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import PostStatus
from app.db.models.community import CommunityPostModel
from app.db.models.user import UserModel
from app.schemas.community import CommunityPostCreate, ModerationAction, PostEdit

logger = logging.getLogger(__name__)

FEED_SIZE = 50
ANONYMOUS_AUTHOR = "Anonymous"


def _post_dict(post: CommunityPostModel, author: UserModel, reveal_author: bool) -> Dict[str, Any]:
    row = {column.name: getattr(post, column.name) for column in CommunityPostModel.__table__.columns}
    if post.is_anonymous and not reveal_author:
        row.update(author_name=ANONYMOUS_AUTHOR, author_role=None, author_username=None)
    else:
        row.update(author_name=author.full_name, author_role=author.role, author_username=author.username)
    return row


async def get_approved_posts(db: AsyncSession, limit: int = FEED_SIZE) -> List[Dict[str, Any]]:
    result = await db.execute(
        select(CommunityPostModel, UserModel)
        .join(UserModel, CommunityPostModel.user_id == UserModel.id)
        .where(CommunityPostModel.status == PostStatus.APPROVED.value)
        .order_by(CommunityPostModel.created_at.desc(), CommunityPostModel.id.desc())
        .limit(limit)
    )
    return [_post_dict(post, author, reveal_author=False) for post, author in result.all()]


async def create_post(db: AsyncSession, user_id: int, data: CommunityPostCreate) -> CommunityPostModel:
    post = CommunityPostModel(
        user_id=user_id,
        title=data.title,
        content=data.content,
        category=data.category,
        is_anonymous=data.is_anonymous,
        status=PostStatus.PENDING.value,
    )
    db.add(post)
    await db.commit()
    await db.refresh(post)
    logger.info(f"Community post id={post.id} submitted by user_id={user_id}, awaiting moderation")
    return post


async def get_pending_posts(db: AsyncSession) -> List[Dict[str, Any]]:
    """Posts awaiting moderation, oldest first; moderators see the real author."""
    result = await db.execute(
        select(CommunityPostModel, UserModel)
        .join(UserModel, CommunityPostModel.user_id == UserModel.id)
        .where(CommunityPostModel.status == PostStatus.PENDING.value)
        .order_by(CommunityPostModel.created_at, CommunityPostModel.id)
    )
    return [_post_dict(post, author, reveal_author=True) for post, author in result.all()]


async def moderate_post(db: AsyncSession, moderator_id: int, data: ModerationAction) -> CommunityPostModel:
    """
    Approve or reject a pending post.

    Raises:
        HTTPException: 404 when the post is missing or was already moderated
    """
    post = await db.get(CommunityPostModel, data.post_id)
    if not post or post.status != PostStatus.PENDING.value:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found or already moderated")

    post.status = PostStatus.APPROVED.value if data.action == "approve" else PostStatus.REJECTED.value
    post.moderated_by = moderator_id
    post.moderated_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(post)
    logger.info(f"Post id={post.id} {post.status} by moderator_id={moderator_id}")
    return post


async def edit_post(db: AsyncSession, moderator_id: int, data: PostEdit) -> CommunityPostModel:
    post = await db.get(CommunityPostModel, data.post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    post.title = data.title
    post.content = data.content
    await db.commit()
    await db.refresh(post)
    logger.info(f"Post id={post.id} edited by moderator_id={moderator_id}")
    return post


async def delete_post(db: AsyncSession, moderator_id: int, post_id: int) -> None:
    post = await db.get(CommunityPostModel, post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    await db.delete(post)
    await db.commit()
    logger.info(f"Post id={post_id} deleted by moderator_id={moderator_id}")
