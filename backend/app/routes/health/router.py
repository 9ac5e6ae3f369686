import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.middleware import get_db
from app.db.crud.user import get_user_count

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Database round trip; 500 when the database is unreachable"""
    try:
        db_time = await db.scalar(select(func.current_timestamp()))
        user_count = await get_user_count(db)
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "unhealthy", "error": str(e)},
        )
    return {
        "status": "healthy",
        "database": "connected",
        "timestamp": str(db_time),
        "users": user_count,
    }
