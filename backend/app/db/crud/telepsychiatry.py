# app/db/crud/telepsychiatry.py
import logging
from datetime import date, datetime
from typing import Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import AppointmentStatus, AppointmentType
from app.db.crud.appointment import get_appointment_for_user, get_provider_sessions
from app.db.crud.clinical import add_note
from app.db.models.user import UserModel

logger = logging.getLogger(__name__)

REMOTE_TYPES = [AppointmentType.INDIVIDUAL.value, AppointmentType.FAMILY.value]

# action -> (new status, past tense used in the session log)
ACTIONS = {
    "start": (AppointmentStatus.CONFIRMED.value, "started"),
    "end": (AppointmentStatus.COMPLETED.value, "ended"),
}


async def get_day_sessions(db: AsyncSession, psychiatrist: UserModel, on_date: date) -> Dict[str, Any]:
    """The psychiatrist's individual and family sessions on one day, with queue counts."""
    rows = await get_provider_sessions(db, psychiatrist.id, on_date=on_date, types=REMOTE_TYPES)
    sessions = [
        {
            "id": row["id"],
            "patient_id": row["patient_id"],
            "patient_name": row["patient_name"],
            "appointment_date": row["appointment_date"],
            "appointment_time": row["appointment_time"],
            "duration": f"{row['duration_minutes']} min",
            "appointment_type": row["type"],
            "status": "waiting" if row["status"] == AppointmentStatus.CONFIRMED.value else row["status"],
            "notes": row["notes"],
        }
        for row in rows
    ]
    return {
        "sessions": sessions,
        "system_status": {
            "total_today": len(rows),
            "waiting": sum(1 for r in rows if r["status"] == AppointmentStatus.CONFIRMED.value),
            "active": sum(1 for r in rows if r["status"] == AppointmentStatus.PENDING.value),
        },
    }


async def apply_session_action(db: AsyncSession, psychiatrist: UserModel, session_id: int, action: str) -> str:
    """
    Start or end a remote session and log it as a clinical note.

    Returns:
        The appointment's new status
    """
    new_status, verb = ACTIONS[action]
    appointment = await get_appointment_for_user(db, psychiatrist, session_id)
    appointment.status = new_status
    add_note(
        db,
        appointment.patient_id,
        psychiatrist.id,
        f"Telepsychiatry session {verb} at {datetime.now().strftime('%Y-%m-%d %H:%M')}",
    )
    await db.commit()
    logger.info(f"Telepsychiatry session appointment_id={session_id} {verb} by psychiatrist_id={psychiatrist.id}")
    return new_status
