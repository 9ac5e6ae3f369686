# app/db/crud/email_log.py
import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.crud.clinical import require_patient
from app.db.models.admin import EmailLogModel
from app.db.models.appointment import AppointmentModel
from app.db.models.user import UserModel
from app.schemas.counselor import EmailRequest

logger = logging.getLogger(__name__)

RECENT_EMAILS = 50


async def log_custom_email(db: AsyncSession, sender: UserModel, data: EmailRequest) -> tuple:
    """
    Record a counselor email to a patient.

    Returns:
        The log row and the recipient patient

    Raises:
        HTTPException: 404 when the patient, or the referenced appointment of
            this counselor and patient, does not exist
    """
    patient = await require_patient(db, data.patient_id)
    if data.appointment_id is not None:
        appointment = await db.get(AppointmentModel, data.appointment_id)
        if (
            not appointment
            or appointment.provider_id != sender.id
            or appointment.patient_id != patient.id
        ):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")

    log = EmailLogModel(
        appointment_id=data.appointment_id,
        sender_id=sender.id,
        recipient_email=patient.email,
        subject=data.subject,
        message=data.message,
    )
    db.add(log)
    await db.commit()
    await db.refresh(log)
    logger.info(f"Email log id={log.id}: user_id={sender.id} -> patient_id={patient.id}")
    return log, patient


async def get_email_logs(
    db: AsyncSession,
    sender_id: int,
    patient_id: Optional[int] = None,
    appointment_id: Optional[int] = None,
    limit: int = RECENT_EMAILS,
) -> List[EmailLogModel]:
    query = select(EmailLogModel).where(EmailLogModel.sender_id == sender_id)
    if patient_id is not None:
        recipient = await db.get(UserModel, patient_id)
        if not recipient:
            return []
        query = query.where(EmailLogModel.recipient_email == recipient.email)
    if appointment_id is not None:
        query = query.where(EmailLogModel.appointment_id == appointment_id)
    result = await db.execute(query.order_by(EmailLogModel.sent_at.desc(), EmailLogModel.id.desc()).limit(limit))
    return list(result.scalars().all())
