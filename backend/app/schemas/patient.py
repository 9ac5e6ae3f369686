# app/schemas/patient.py
from datetime import date, datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.schemas.shared import UserOut


class PatientCreate(BaseModel):
    """Admin-created patient with an explicit username."""
    username: Annotated[str, Field(min_length=3, max_length=50, pattern=r"^[A-Za-z0-9._]+$")]
    name: Annotated[str, Field(min_length=1, max_length=100)]
    email: EmailStr
    password: Annotated[str, Field(min_length=6, max_length=128)]
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None


class PatientListResponse(BaseModel):
    patients: List[UserOut]


class ProfileResponse(BaseModel):
    profile: UserOut
    message: Optional[str] = None


class ClinicalNoteCreate(BaseModel):
    patient_id: int
    note_content: Annotated[str, Field(min_length=1)]


class ClinicalNote(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    provider_id: int
    note_content: str
    created_at: Optional[datetime] = None
    provider_name: Optional[str] = None


class ClinicalNoteListResponse(BaseModel):
    notes: List[ClinicalNote]


class TreatmentPlanUpsert(BaseModel):
    patient_id: int
    treatment_goal: Annotated[str, Field(min_length=1)]
    session_frequency: Annotated[str, Field(min_length=1, max_length=50)]


class TreatmentPlan(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    treatment_goal: str
    session_frequency: str
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_by_name: Optional[str] = None


class TreatmentPlanResponse(BaseModel):
    treatment_plan: Optional[TreatmentPlan] = None


class PatientProgressSummary(BaseModel):
    id: int
    name: str
    email: str
    condition: str
    start_date: Optional[date] = None
    last_session: Optional[date] = None
    next_appointment: Optional[date] = None
    progress: int
    trend: str
    total_sessions: int = 0
    recent_avg_mood: float = 0
    initial_avg_mood: float = 0


class RecentMoodEntry(BaseModel):
    entry_date: date
    mood: int
    anxiety: Optional[int] = None
    stress: Optional[int] = None
    sleep: Optional[float] = None
    notes: Optional[str] = None


class PatientProgressDetail(PatientProgressSummary):
    mood_scores: List[int]
    medications: List[str]
    notes: str
    clinical_notes: List[ClinicalNote]
    recent_mood_entries: List[RecentMoodEntry]


class ProgressListResponse(BaseModel):
    patients: List[PatientProgressSummary]


class ProgressDetailResponse(BaseModel):
    patient: PatientProgressDetail
