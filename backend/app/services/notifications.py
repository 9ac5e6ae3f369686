# app/services/notifications.py
import logging
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.crud.appointment import email_data_for
from app.db.crud.settings import get_setting
from app.db.models.appointment import AppointmentModel
from app.services import email

logger = logging.getLogger(__name__)


async def notifications_enabled(db: AsyncSession) -> bool:
    return bool(await get_setting(db, "email_notifications"))


async def queue_booking_confirmation(
    db: AsyncSession, background_tasks: BackgroundTasks, appointment: AppointmentModel
) -> None:
    if not await notifications_enabled(db):
        logger.debug(f"Email notifications disabled; no confirmation for appointment_id={appointment.id}")
        return
    data = await email_data_for(db, appointment)
    if data:
        background_tasks.add_task(email.send_appointment_confirmation, data)


async def queue_status_update(
    db: AsyncSession,
    background_tasks: BackgroundTasks,
    appointment: AppointmentModel,
    note: Optional[str] = None,
) -> None:
    if not await notifications_enabled(db):
        logger.debug(f"Email notifications disabled; no status email for appointment_id={appointment.id}")
        return
    data = await email_data_for(db, appointment)
    if data:
        background_tasks.add_task(email.send_appointment_status, data, appointment.status, note)
