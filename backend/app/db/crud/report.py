# app/db/crud/report.py
import logging
from datetime import date, timedelta
from typing import Optional, Dict, Any

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.crud.appointment import get_appointments_in_range
from app.db.crud.mood import get_scores_by_user
from app.services.reports import MOOD_WINDOW, REPORT_BUILDERS, build_report

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_DAYS = 30


def resolve_period(start: Optional[date], end: Optional[date]) -> tuple:
    end = end or date.today()
    start = start or end - timedelta(days=DEFAULT_PERIOD_DAYS)
    if start > end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="'from' must not be after 'to'")
    return start, end


async def generate_report(
    db: AsyncSession,
    counselor_id: int,
    report_type: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    client_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Build one of the counselor reports from the counselor's appointments and
    the clients' mood entries.

    Args:
        db: Database session
        counselor_id: Counselor the report is about
        report_type: One of the ``ReportType`` values
        start: First day of the period (default: 30 days before ``end``)
        end: Last day of the period (default: today)
        client_id: Restrict the report to one client (optional)

    Returns:
        Dict with the report type, period bounds and the report body
    """
    if report_type not in REPORT_BUILDERS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid report type")
    start, end = resolve_period(start, end)

    appointments = await get_appointments_in_range(db, counselor_id, client_id)
    patient_ids = sorted({a.patient_id for a in appointments})
    moods = await get_scores_by_user(db, patient_ids, start - MOOD_WINDOW, end + MOOD_WINDOW)

    logger.info(
        f"Generating {report_type} report for counselor_id={counselor_id} "
        f"{start}..{end} client_id={client_id}"
    )
    return {
        "type": report_type,
        "period_from": start,
        "period_to": end,
        "data": build_report(report_type, appointments, moods, start, end),
    }
