from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import Role
from app.core.middleware import get_db, require_roles
from app.db.crud.telepsychiatry import get_day_sessions, apply_session_action
from app.db.models.user import UserModel
from app.schemas.telepsychiatry import TeleSessionAction, TeleSessionActionResponse, TeleSessionListResponse

router = APIRouter(prefix="/telepsychiatry/sessions", tags=["telepsychiatry"])

psychiatrist_only = require_roles([Role.PSYCHIATRIST])


@router.get("", response_model=TeleSessionListResponse)
async def day_sessions(
    on_date: Optional[date] = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(psychiatrist_only),
):
    """Remote sessions for one day (today by default) with the waiting/active counts"""
    return await get_day_sessions(db, current_user, on_date or date.today())


@router.post("", response_model=TeleSessionActionResponse)
async def session_action(
    data: TeleSessionAction,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(psychiatrist_only),
):
    new_status = await apply_session_action(db, current_user, data.session_id, data.action)
    return TeleSessionActionResponse(message=f"Session {data.action}ed", new_status=new_status)
