# app/schemas/appointment.py
from datetime import date, datetime, time
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field

from app.config.constants import AppointmentStatus, AppointmentType


class AppointmentCreate(BaseModel):
    provider_id: int = Field(gt=0)
    appointment_date: date
    appointment_time: time
    type: AppointmentType
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None


class Appointment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    provider_id: int
    appointment_date: date
    appointment_time: time
    duration_minutes: int
    type: str
    status: str
    notes: Optional[str] = None
    meeting_link: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AppointmentWithParties(Appointment):
    """Appointment row plus the names the caller's role is allowed to see."""
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    provider_name: Optional[str] = None
    provider_role: Optional[str] = None


class AppointmentListResponse(BaseModel):
    appointments: List[AppointmentWithParties]


class AppointmentCreatedResponse(BaseModel):
    appointment: Appointment
    message: str


class Provider(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    role: str
    email: str


class ProviderListResponse(BaseModel):
    providers: List[Provider]
