# app/schemas/counselor.py
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.config.constants import AppointmentStatus, AppointmentType


class CounselorClient(BaseModel):
    id: int
    full_name: str
    email: str
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    total_appointments: int
    completed_sessions: int
    last_appointment: Optional[date] = None


class ClientListResponse(BaseModel):
    clients: List[CounselorClient]


class SessionCreate(BaseModel):
    patient_id: int
    appointment_date: date
    appointment_time: time
    type: AppointmentType = AppointmentType.INDIVIDUAL
    notes: Optional[str] = None


class SessionUpdate(BaseModel):
    session_id: int
    notes: Optional[str] = None
    status: Optional[AppointmentStatus] = None


class Report(BaseModel):
    type: str
    period_from: date
    period_to: date
    data: Dict[str, Any]


class EmailRequest(BaseModel):
    patient_id: int
    subject: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)
    appointment_id: Optional[int] = None


class EmailLog(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    appointment_id: Optional[int] = None
    sender_id: int
    recipient_email: str
    subject: str
    message: str
    sent_at: Optional[datetime] = None


class EmailLogListResponse(BaseModel):
    emails: List[EmailLog]
