# app/db/crud/appointment.py
import logging
from datetime import date, time
from typing import List, Optional, Dict, Any, Tuple

from fastapi import HTTPException, status
from sqlalchemy import select, func, case
from sqlalchemy.orm import aliased
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import (
    ACTIVE_APPOINTMENT_STATUSES,
    PROVIDER_ROLES,
    AppointmentStatus,
    Role,
)
from app.db.models.appointment import AppointmentModel
from app.db.models.user import UserModel
from app.schemas.appointment import AppointmentCreate, AppointmentUpdate
from app.schemas.counselor import SessionCreate, SessionUpdate
from app.services.email import AppointmentEmailData

logger = logging.getLogger(__name__)

Patient = aliased(UserModel, name="patient")
Provider = aliased(UserModel, name="provider")


def _appointment_dict(appointment: AppointmentModel) -> Dict[str, Any]:
    return {column.name: getattr(appointment, column.name) for column in AppointmentModel.__table__.columns}


async def list_appointments(db: AsyncSession, user: UserModel) -> List[Dict[str, Any]]:
    """
    Appointments visible to ``user``, newest first.

    Patients see their own with the provider's name and role, providers see
    theirs with the patient's name and email, admins see every appointment
    with both.
    """
    query = (
        select(AppointmentModel, Patient, Provider)
        .join(Patient, AppointmentModel.patient_id == Patient.id)
        .join(Provider, AppointmentModel.provider_id == Provider.id)
        .order_by(AppointmentModel.appointment_date.desc(), AppointmentModel.appointment_time.desc())
    )
    if user.role == Role.PATIENT.value:
        query = query.where(AppointmentModel.patient_id == user.id)
    elif user.role in PROVIDER_ROLES:
        query = query.where(AppointmentModel.provider_id == user.id)
    elif user.role != Role.ADMIN.value:
        return []

    result = await db.execute(query)
    appointments = []
    for appointment, patient, provider in result.all():
        row = _appointment_dict(appointment)
        if user.role != Role.PATIENT.value:
            row["patient_name"] = patient.full_name
            row["patient_email"] = patient.email
        if user.role not in PROVIDER_ROLES:
            row["provider_name"] = provider.full_name
            row["provider_role"] = provider.role
        appointments.append(row)
    logger.debug(f"Listed {len(appointments)} appointments for user_id={user.id} role={user.role}")
    return appointments


async def find_slot_conflict(
    db: AsyncSession,
    provider_id: int,
    appointment_date: date,
    appointment_time: time,
    statuses=None,
) -> Optional[AppointmentModel]:
    """An appointment already holding the provider's slot, if any."""
    query = select(AppointmentModel).where(
        AppointmentModel.provider_id == provider_id,
        AppointmentModel.appointment_date == appointment_date,
        AppointmentModel.appointment_time == appointment_time,
    )
    if statuses is None:
        query = query.where(AppointmentModel.status != AppointmentStatus.CANCELLED.value)
    else:
        query = query.where(AppointmentModel.status.in_(statuses))
    result = await db.execute(query.limit(1))
    return result.scalars().first()


async def _lock_user(db: AsyncSession, user_id: int, roles) -> Optional[UserModel]:
    """Load an active user with one of ``roles``, locking the row until commit."""
    result = await db.execute(
        select(UserModel)
        .where(UserModel.id == user_id, UserModel.role.in_(roles), UserModel.is_active.is_(True))
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def book_appointment(
    db: AsyncSession, patient: UserModel, data: AppointmentCreate
) -> Tuple[AppointmentModel, UserModel]:
    """
    Book a pending appointment for ``patient``.

    The provider row is locked while the slot is checked so two bookings of the
    same slot, or a booking and a scheduled session, cannot both succeed.

    Args:
        db: Database session
        patient: The patient booking
        data: Requested provider, date, time and session type

    Returns:
        The created appointment and its provider

    Raises:
        HTTPException: 404 unknown or inactive provider, 409 slot already taken
    """
    logger.info(
        f"Booking for patient_id={patient.id} with provider_id={data.provider_id} "
        f"on {data.appointment_date} {data.appointment_time}"
    )
    try:
        provider = await _lock_user(db, data.provider_id, PROVIDER_ROLES)
        if not provider:
            logger.warning(f"Booking failed: provider_id={data.provider_id} not found or inactive")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")

        conflict = await find_slot_conflict(db, provider.id, data.appointment_date, data.appointment_time)
        if conflict:
            logger.warning(f"Booking conflict with appointment_id={conflict.id} for provider_id={provider.id}")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This time slot is already booked")

        appointment = AppointmentModel(
            patient_id=patient.id,
            provider_id=provider.id,
            appointment_date=data.appointment_date,
            appointment_time=data.appointment_time,
            type=data.type.value,
            notes=data.notes,
            status=AppointmentStatus.PENDING.value,
        )
        db.add(appointment)
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise

    await db.refresh(appointment)
    logger.info(f"Created appointment_id={appointment.id} with status='{appointment.status}'")
    return appointment, provider


async def get_appointment_for_user(db: AsyncSession, user: UserModel, appointment_id: int) -> AppointmentModel:
    """
    Appointment ``appointment_id`` if ``user`` may modify it.

    Raises:
        HTTPException: 404 when missing or not owned by the caller
    """
    query = select(AppointmentModel).where(AppointmentModel.id == appointment_id)
    if user.role == Role.PATIENT.value:
        query = query.where(AppointmentModel.patient_id == user.id)
    elif user.role in PROVIDER_ROLES:
        query = query.where(AppointmentModel.provider_id == user.id)
    elif user.role != Role.ADMIN.value:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")

    appointment = (await db.execute(query)).scalar_one_or_none()
    if not appointment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return appointment


async def update_appointment(
    db: AsyncSession, user: UserModel, appointment_id: int, data: AppointmentUpdate
) -> Tuple[AppointmentModel, Optional[str]]:
    """
    Apply a status and/or notes change.

    Returns:
        The appointment and the previous status when the status changed, else None
    """
    appointment = await get_appointment_for_user(db, user, appointment_id)
    previous_status = None
    if data.status is not None and data.status.value != appointment.status:
        previous_status = appointment.status
        appointment.status = data.status.value
    if data.notes is not None:
        appointment.notes = data.notes
    await db.commit()
    await db.refresh(appointment)
    if previous_status:
        logger.info(
            f"Appointment_id={appointment.id} status {previous_status} -> {appointment.status} by user_id={user.id}"
        )
    return appointment, previous_status


async def get_provider_sessions(
    db: AsyncSession,
    provider_id: int,
    status_filter: Optional[str] = None,
    on_date: Optional[date] = None,
    types: Optional[List[str]] = None,
) -> List[Dict[str, Any]]:
    """Provider's appointments with patient details, soonest first."""
    query = (
        select(AppointmentModel, Patient)
        .join(Patient, AppointmentModel.patient_id == Patient.id)
        .where(AppointmentModel.provider_id == provider_id)
        .order_by(AppointmentModel.appointment_date, AppointmentModel.appointment_time)
    )
    if status_filter and status_filter != "all":
        query = query.where(AppointmentModel.status == status_filter)
    if on_date:
        query = query.where(AppointmentModel.appointment_date == on_date)
    if types:
        query = query.where(AppointmentModel.type.in_(types))

    result = await db.execute(query)
    sessions = []
    for appointment, patient in result.all():
        row = _appointment_dict(appointment)
        row["patient_name"] = patient.full_name
        row["patient_email"] = patient.email
        sessions.append(row)
    return sessions


async def create_provider_session(
    db: AsyncSession, provider: UserModel, data: SessionCreate
) -> AppointmentModel:
    """
    Schedule a confirmed session for one of the provider's patients.

    The provider row is locked first, as in ``book_appointment``, so patient
    bookings and scheduled sessions for the same slot are serialised.

    Raises:
        HTTPException: 404 unknown or inactive patient, 409 slot taken by a pending/confirmed session
    """
    try:
        await _lock_user(db, provider.id, PROVIDER_ROLES)
        patient = await _lock_user(db, data.patient_id, (Role.PATIENT.value,))
        if not patient:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")

        conflict = await find_slot_conflict(
            db, provider.id, data.appointment_date, data.appointment_time, ACTIVE_APPOINTMENT_STATUSES
        )
        if conflict:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="This time slot is already booked")

        appointment = AppointmentModel(
            patient_id=patient.id,
            provider_id=provider.id,
            appointment_date=data.appointment_date,
            appointment_time=data.appointment_time,
            type=data.type.value,
            notes=data.notes,
            status=AppointmentStatus.CONFIRMED.value,
        )
        db.add(appointment)
        await db.commit()
    except HTTPException:
        await db.rollback()
        raise

    await db.refresh(appointment)
    logger.info(f"Provider_id={provider.id} scheduled session appointment_id={appointment.id}")
    return appointment


async def update_provider_session(
    db: AsyncSession, provider: UserModel, data: SessionUpdate
) -> Tuple[AppointmentModel, Optional[str]]:
    if data.notes is None and data.status is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nothing to update")
    appointment = await get_appointment_for_user(db, provider, data.session_id)
    previous_status = None
    if data.status is not None and data.status.value != appointment.status:
        previous_status = appointment.status
        appointment.status = data.status.value
    if data.notes is not None:
        appointment.notes = data.notes
    await db.commit()
    await db.refresh(appointment)
    return appointment, previous_status


async def get_provider_clients(db: AsyncSession, provider_id: int) -> List[Dict[str, Any]]:
    """Patients with at least one appointment with the provider, with visit counts."""
    completed = case((AppointmentModel.status == AppointmentStatus.COMPLETED.value, 1), else_=0)
    query = (
        select(
            UserModel,
            func.count(AppointmentModel.id).label("total_appointments"),
            func.sum(completed).label("completed_sessions"),
            func.max(AppointmentModel.appointment_date).label("last_appointment"),
        )
        .join(AppointmentModel, AppointmentModel.patient_id == UserModel.id)
        .where(AppointmentModel.provider_id == provider_id, UserModel.role == Role.PATIENT.value)
        .group_by(UserModel.id)
        .order_by(UserModel.full_name)
    )
    result = await db.execute(query)
    return [
        {
            "id": patient.id,
            "full_name": patient.full_name,
            "email": patient.email,
            "phone": patient.phone,
            "date_of_birth": patient.date_of_birth,
            "total_appointments": total or 0,
            "completed_sessions": int(done or 0),
            "last_appointment": last,
        }
        for patient, total, done, last in result.all()
    ]


async def get_appointments_in_range(
    db: AsyncSession,
    provider_id: int,
    client_id: Optional[int] = None,
) -> List[AppointmentModel]:
    query = select(AppointmentModel).where(AppointmentModel.provider_id == provider_id)
    if client_id:
        query = query.where(AppointmentModel.patient_id == client_id)
    result = await db.execute(query.order_by(AppointmentModel.appointment_date))
    return list(result.scalars().all())


async def email_data_for(db: AsyncSession, appointment: AppointmentModel) -> Optional[AppointmentEmailData]:
    """Everything a notification email about ``appointment`` needs."""
    patient = await db.get(UserModel, appointment.patient_id)
    provider = await db.get(UserModel, appointment.provider_id)
    if not patient or not provider:
        return None
    return AppointmentEmailData(
        patient_email=patient.email,
        patient_name=patient.full_name,
        provider_name=provider.full_name,
        appointment_date=appointment.appointment_date,
        appointment_time=appointment.appointment_time,
        session_type=appointment.type.capitalize(),
        appointment_id=appointment.id,
        reason=appointment.notes,
    )
