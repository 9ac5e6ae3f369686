# app/db/crud/analytics.py
import logging
from typing import Dict, Any

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import AppointmentType, PostStatus, Role
from app.db.models.appointment import AppointmentModel
from app.db.models.community import CommunityPostModel
from app.db.models.message import MessageModel
from app.db.models.mood import MoodEntryModel
from app.db.models.resource import ResourceModel
from app.db.models.user import UserModel

logger = logging.getLogger(__name__)


async def _count(db: AsyncSession, column, *criteria) -> int:
    return await db.scalar(select(func.count(column)).where(*criteria)) or 0


async def get_platform_totals(db: AsyncSession) -> Dict[str, Any]:
    """Headline counts for the admin dashboard."""
    users = {role.value: 0 for role in Role}
    rows = await db.execute(
        select(UserModel.role, func.count(UserModel.id))
        .where(UserModel.is_active.is_(True))
        .group_by(UserModel.role)
    )
    for role, count in rows.all():
        users[role] = count
    users["total"] = sum(users.values())

    appointments = {kind.value: 0 for kind in AppointmentType}
    rows = await db.execute(
        select(AppointmentModel.type, func.count(AppointmentModel.id)).group_by(AppointmentModel.type)
    )
    for kind, count in rows.all():
        appointments[kind] = count
    appointments["total"] = sum(appointments.values())

    totals = {
        "users": users,
        "appointments": appointments,
        "resources": await _count(db, ResourceModel.id, ResourceModel.is_published.is_(True)),
        "community_posts": await _count(
            db, CommunityPostModel.id, CommunityPostModel.status == PostStatus.APPROVED.value
        ),
        "mood_entries": await _count(db, MoodEntryModel.id),
        "messages": await _count(db, MessageModel.id),
    }
    logger.debug(f"Platform totals: {totals}")
    return totals
