from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import Role
from app.core.middleware import get_db, require_roles
from app.db.crud.analytics import get_platform_totals
from app.schemas.admin import AnalyticsResponse

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("", response_model=AnalyticsResponse, dependencies=[Depends(require_roles([Role.ADMIN]))])
async def platform_analytics(db: AsyncSession = Depends(get_db)):
    return await get_platform_totals(db)
