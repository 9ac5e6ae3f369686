from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.middleware import get_db, get_current_user
from app.db.crud.user import get_providers
from app.schemas.appointment import ProviderListResponse

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("", response_model=ProviderListResponse, dependencies=[Depends(get_current_user)])
async def list_providers(db: AsyncSession = Depends(get_db)):
    """Active psychiatrists and counselors patients can book"""
    return {"providers": await get_providers(db)}
