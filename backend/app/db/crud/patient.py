# app/db/crud/patient.py
import logging
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Dict, Any

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import AppointmentStatus, ACTIVE_APPOINTMENT_STATUSES, Role
from app.db.crud.clinical import get_notes
from app.db.crud.mood import get_entries_since, get_scores_by_user
from app.db.crud.user import get_users
from app.db.models.appointment import AppointmentModel
from app.db.models.clinical import ClinicalNoteModel, TreatmentPlanModel
from app.db.models.message import MessageModel
from app.db.models.mood import MoodEntryModel
from app.db.models.user import UserModel
from app.services import progress

logger = logging.getLogger(__name__)

PROGRESS_NOTES = 20


def _row(model) -> Dict[str, Any]:
    return {column.name: getattr(model, column.name) for column in model.__table__.columns}


async def export_patient_data(db: AsyncSession, patient: UserModel) -> Dict[str, Any]:
    """Everything stored about a patient, for a personal data export."""

    async def _all(model, *criteria, order_by):
        result = await db.execute(select(model).where(*criteria).order_by(order_by))
        return [_row(item) for item in result.scalars().all()]

    profile = _row(patient)
    profile.pop("password_hash", None)

    appointments = await _all(
        AppointmentModel, AppointmentModel.patient_id == patient.id, order_by=AppointmentModel.appointment_date.desc()
    )
    mood_entries = await _all(
        MoodEntryModel, MoodEntryModel.user_id == patient.id, order_by=MoodEntryModel.entry_date.desc()
    )
    messages = await _all(
        MessageModel, MessageModel.sender_id == patient.id, order_by=MessageModel.created_at.desc()
    )
    clinical_notes = await _all(
        ClinicalNoteModel, ClinicalNoteModel.patient_id == patient.id, order_by=ClinicalNoteModel.created_at.desc()
    )
    treatment_plans = await _all(
        TreatmentPlanModel, TreatmentPlanModel.patient_id == patient.id, order_by=TreatmentPlanModel.id
    )
    logger.info(f"Exported data for patient_id={patient.id}")
    return {
        "export_date": datetime.now(timezone.utc).isoformat(),
        "profile": profile,
        "appointments": appointments,
        "mood_entries": mood_entries,
        "messages": messages,
        "clinical_notes": clinical_notes,
        "treatment_plans": treatment_plans,
        "summary": {
            "total_appointments": len(appointments),
            "total_mood_entries": len(mood_entries),
            "total_messages": len(messages),
            "total_clinical_notes": len(clinical_notes),
            "has_treatment_plan": bool(treatment_plans),
        },
    }


async def _appointments_by_patient(db: AsyncSession, patient_ids: List[int]) -> Dict[int, List[AppointmentModel]]:
    by_patient: Dict[int, List[AppointmentModel]] = {pid: [] for pid in patient_ids}
    if not patient_ids:
        return by_patient
    result = await db.execute(
        select(AppointmentModel)
        .where(AppointmentModel.patient_id.in_(patient_ids))
        .order_by(AppointmentModel.appointment_date.desc(), AppointmentModel.appointment_time.desc())
    )
    for appointment in result.scalars().all():
        by_patient[appointment.patient_id].append(appointment)
    return by_patient


def _session_facts(appointments: List[AppointmentModel], today: date) -> Dict[str, Any]:
    """Last completed session, next upcoming one, completed count and latest notes."""
    completed = [a for a in appointments if a.status == AppointmentStatus.COMPLETED.value]
    upcoming = sorted(
        (a for a in appointments if a.status in ACTIVE_APPOINTMENT_STATUSES and a.appointment_date > today),
        key=lambda a: (a.appointment_date, a.appointment_time),
    )
    with_notes = [a for a in appointments if a.notes and a.notes.strip()]
    return {
        "last_session": completed[0] if completed else None,
        "next_appointment": upcoming[0].appointment_date if upcoming else None,
        "total_sessions": len(completed),
        "latest_notes": with_notes[0].notes if with_notes else None,
    }


def _start_date(patient: UserModel) -> Optional[date]:
    return patient.created_at.date() if patient.created_at else None


async def get_progress_summaries(db: AsyncSession, search: Optional[str] = None) -> List[Dict[str, Any]]:
    """Progress overview of every active patient, ordered by name."""
    patients = await get_users(db, role=Role.PATIENT.value, search=search, active=True)
    ids = [p.id for p in patients]
    scores = await get_scores_by_user(db, ids)
    appointments = await _appointments_by_patient(db, ids)
    today = date.today()

    summaries = []
    for patient in patients:
        initial, recent = progress.mood_averages(scores[patient.id])
        facts = _session_facts(appointments[patient.id], today)
        last = facts["last_session"]
        summaries.append(
            {
                "id": patient.id,
                "name": patient.full_name,
                "email": patient.email,
                "condition": progress.detect_condition(facts["latest_notes"]),
                "start_date": _start_date(patient),
                "last_session": last.appointment_date if last else None,
                "next_appointment": facts["next_appointment"],
                "progress": progress.progress_percent(recent),
                "trend": progress.mood_trend(initial, recent),
                "total_sessions": facts["total_sessions"],
                "recent_avg_mood": recent,
                "initial_avg_mood": initial,
            }
        )
    return summaries


async def get_progress_detail(db: AsyncSession, patient_id: int) -> Dict[str, Any]:
    """
    Detailed progress of one patient.

    Weekly mood averages cover the last seven weeks; medications and the
    condition come from the notes of the latest completed session.

    Raises:
        HTTPException: 404 when the patient does not exist
    """
    patient = await db.get(UserModel, patient_id)
    if not patient or patient.role != Role.PATIENT.value:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")

    today = date.today()
    entries = await get_entries_since(db, patient_id, today - timedelta(weeks=progress.WEEKS_SHOWN))
    pairs = [(e.entry_date, e.mood_score) for e in entries]
    weekly = progress.weekly_mood_scores(pairs, today)

    appointments = (await _appointments_by_patient(db, [patient_id]))[patient_id]
    facts = _session_facts(appointments, today)
    last = facts["last_session"]
    last_notes = last.notes if last else None

    return {
        "id": patient.id,
        "name": patient.full_name,
        "email": patient.email,
        "condition": progress.detect_condition(last_notes),
        "start_date": _start_date(patient),
        "last_session": last.appointment_date if last else None,
        "next_appointment": facts["next_appointment"],
        "progress": progress.progress_percent(weekly[-1]),
        "trend": progress.mood_trend(weekly[0], weekly[-1]),
        "total_sessions": facts["total_sessions"],
        "recent_avg_mood": float(weekly[-1]),
        "initial_avg_mood": float(weekly[0]),
        "mood_scores": weekly,
        "medications": progress.extract_medications(last_notes),
        "notes": last_notes or "No recent notes available.",
        "clinical_notes": await get_notes(db, patient_id, limit=PROGRESS_NOTES),
        "recent_mood_entries": [
            {
                "entry_date": e.entry_date,
                "mood": e.mood_score,
                "anxiety": e.anxiety_level,
                "stress": e.stress_level,
                "sleep": e.sleep_hours,
                "notes": e.notes,
            }
            for e in entries[-7:]
        ],
    }
