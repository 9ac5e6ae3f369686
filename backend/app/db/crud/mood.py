# app/db/crud/mood.py
import logging
from datetime import date
from typing import List, Optional, Sequence, Dict, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.mood import MoodEntryModel
from app.schemas.mood import MoodEntryCreate

logger = logging.getLogger(__name__)

RECENT_ENTRIES = 30


async def get_recent_entries(db: AsyncSession, user_id: int, limit: int = RECENT_ENTRIES) -> List[MoodEntryModel]:
    result = await db.execute(
        select(MoodEntryModel)
        .where(MoodEntryModel.user_id == user_id)
        .order_by(MoodEntryModel.entry_date.desc(), MoodEntryModel.created_at.desc(), MoodEntryModel.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def create_entry(db: AsyncSession, user_id: int, data: MoodEntryCreate) -> MoodEntryModel:
    entry = MoodEntryModel(user_id=user_id, **data.model_dump())
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    logger.info(f"Mood entry id={entry.id} recorded for user_id={user_id} on {entry.entry_date}")
    return entry


async def get_entries_since(
    db: AsyncSession, user_id: int, since: Optional[date] = None
) -> List[MoodEntryModel]:
    """All of a user's entries (from ``since`` on, when given), oldest first."""
    query = select(MoodEntryModel).where(MoodEntryModel.user_id == user_id)
    if since:
        query = query.where(MoodEntryModel.entry_date >= since)
    result = await db.execute(query.order_by(MoodEntryModel.entry_date, MoodEntryModel.id))
    return list(result.scalars().all())


async def get_scores_by_user(
    db: AsyncSession, user_ids: Sequence[int], start: Optional[date] = None, end: Optional[date] = None
) -> Dict[int, List[Tuple[date, int]]]:
    """(entry_date, mood_score) pairs per user, oldest first."""
    scores: Dict[int, List[Tuple[date, int]]] = {uid: [] for uid in user_ids}
    if not user_ids:
        return scores
    query = select(MoodEntryModel.user_id, MoodEntryModel.entry_date, MoodEntryModel.mood_score).where(
        MoodEntryModel.user_id.in_(list(user_ids))
    )
    if start:
        query = query.where(MoodEntryModel.entry_date >= start)
    if end:
        query = query.where(MoodEntryModel.entry_date <= end)
    result = await db.execute(query.order_by(MoodEntryModel.entry_date, MoodEntryModel.id))
    for user_id, entry_date, score in result.all():
        scores[user_id].append((entry_date, score))
    return scores
