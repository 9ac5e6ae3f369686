from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import Role
from app.core.middleware import get_db, get_current_user, require_roles
from app.db.crud.mood import get_recent_entries, create_entry
from app.db.models.user import UserModel
from app.schemas.mood import MoodEntryCreate, MoodEntryListResponse, MoodEntryResponse

router = APIRouter(prefix="/mood", tags=["mood"])


@router.get("", response_model=MoodEntryListResponse)
async def list_mood_entries(
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    """The caller's 30 most recent mood entries"""
    return {"entries": await get_recent_entries(db, current_user.id)}


@router.post("", response_model=MoodEntryResponse, status_code=status.HTTP_201_CREATED)
async def add_mood_entry(
    data: MoodEntryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(require_roles([Role.PATIENT])),
):
    return {"entry": await create_entry(db, current_user.id, data)}
