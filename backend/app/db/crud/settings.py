# app/db/crud/settings.py
import logging
from typing import Any, Dict

from fastapi import HTTPException, status
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import DEFAULT_SYSTEM_SETTINGS
from app.db.models.admin import SystemSettingModel

logger = logging.getLogger(__name__)


async def get_settings(db: AsyncSession) -> Dict[str, Any]:
    """Stored values merged over the defaults."""
    result = await db.execute(select(SystemSettingModel))
    merged = dict(DEFAULT_SYSTEM_SETTINGS)
    for row in result.scalars().all():
        if row.key in merged:
            merged[row.key] = row.value
    return merged


async def get_setting(db: AsyncSession, key: str) -> Any:
    row = await db.get(SystemSettingModel, key)
    if row is not None:
        return row.value
    return DEFAULT_SYSTEM_SETTINGS.get(key)


def _coerce(key: str, value: Any) -> Any:
    """Check ``value`` has the same JSON type as the default for ``key``."""
    default = DEFAULT_SYSTEM_SETTINGS[key]
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Setting '{key}' must be a boolean")
    elif isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=f"Setting '{key}' must be a non-negative integer"
            )
    elif not isinstance(value, str):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Setting '{key}' must be a string")
    return value


async def update_settings(db: AsyncSession, values: Dict[str, Any], admin_id: int) -> Dict[str, Any]:
    """
    Persist the given settings.

    Args:
        db: Database session
        values: Setting key -> new value; only known keys are accepted
        admin_id: Admin making the change

    Returns:
        The full settings after the update
    """
    if not values:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No settings provided")
    unknown = sorted(set(values) - set(DEFAULT_SYSTEM_SETTINGS))
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown settings: {', '.join(unknown)}"
        )

    for key, value in values.items():
        value = _coerce(key, value)
        row = await db.get(SystemSettingModel, key)
        if row is None:
            db.add(SystemSettingModel(key=key, value=value, updated_by=admin_id))
        else:
            row.value = value
            row.updated_by = admin_id
    await db.commit()
    logger.info(f"Admin id={admin_id} updated settings: {', '.join(sorted(values))}")
    return await get_settings(db)


async def reset_settings(db: AsyncSession, admin_id: int) -> Dict[str, Any]:
    await db.execute(delete(SystemSettingModel))
    await db.commit()
    logger.info(f"Admin id={admin_id} reset settings to defaults")
    return dict(DEFAULT_SYSTEM_SETTINGS)
