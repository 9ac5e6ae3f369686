# app/schemas/telepsychiatry.py
from datetime import date, time
from typing import List, Literal, Optional

from pydantic import BaseModel


class TeleSession(BaseModel):
    id: int
    patient_id: int
    patient_name: str
    appointment_date: date
    appointment_time: time
    duration: str
    appointment_type: str
    status: str
    notes: Optional[str] = None


class SystemStatus(BaseModel):
    total_today: int
    waiting: int
    active: int


class TeleSessionListResponse(BaseModel):
    sessions: List[TeleSession]
    system_status: SystemStatus


class TeleSessionAction(BaseModel):
    session_id: int
    action: Literal["start", "end"]


class TeleSessionActionResponse(BaseModel):
    message: str
    new_status: str
