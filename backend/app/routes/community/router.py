from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.middleware import get_db, get_current_user
from app.db.crud.community import get_approved_posts, create_post
from app.db.models.user import UserModel
from app.schemas.community import (
    CommunityPost,
    CommunityPostCreate,
    CommunityPostListResponse,
    CommunityPostResponse,
)

router = APIRouter(prefix="/community/posts", tags=["community"])


@router.get("", response_model=CommunityPostListResponse, dependencies=[Depends(get_current_user)])
async def list_posts(db: AsyncSession = Depends(get_db)):
    """The 50 newest approved posts"""
    return {"posts": await get_approved_posts(db)}


@router.post("", response_model=CommunityPostResponse, status_code=status.HTTP_201_CREATED)
async def submit_post(
    data: CommunityPostCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    post = await create_post(db, current_user.id, data)
    return CommunityPostResponse(
        post=CommunityPost.model_validate(post),
        message="Post submitted and awaiting moderation",
    )
