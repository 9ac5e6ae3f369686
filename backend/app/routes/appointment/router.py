from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.config.constants import AppointmentStatus, Role
from app.core.middleware import get_db, get_current_user, require_roles
from app.db.crud.appointment import list_appointments, book_appointment, update_appointment
from app.db.models.user import UserModel
from app.schemas.appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentCreatedResponse,
    AppointmentListResponse,
    AppointmentUpdate,
)
from app.services.notifications import queue_booking_confirmation, queue_status_update

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.get("", response_model=AppointmentListResponse)
async def get_appointments_route(
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user)
):
    """Appointments visible to the current user"""
    return {"appointments": await list_appointments(db, current_user)}


@router.post("", response_model=AppointmentCreatedResponse, status_code=201)
async def create_appointment_route(
    appointment: AppointmentCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(require_roles([Role.PATIENT]))
):
    """Book an appointment for the current patient"""
    created, _provider = await book_appointment(db, current_user, appointment)
    await queue_booking_confirmation(db, background_tasks, created)
    return AppointmentCreatedResponse(
        appointment=Appointment.model_validate(created),
        message="Appointment booked successfully",
    )


@router.patch("/{appointment_id}", response_model=Appointment)
async def update_appointment_route(
    appointment_id: int,
    changes: AppointmentUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user)
):
    """Change the status or notes of an appointment the user takes part in"""
    appointment, previous_status = await update_appointment(db, current_user, appointment_id, changes)
    if previous_status and appointment.status == AppointmentStatus.CONFIRMED.value:
        await queue_status_update(db, background_tasks, appointment)
    return appointment
