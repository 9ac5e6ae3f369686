# app/services/reports.py
"""
Counselor report builders.

Each builder takes the counselor's appointments (already narrowed to a client
when one was requested) and, for the mood-based reports, the clients' mood
entries, and returns the report body as a plain dict.
"""
from collections import Counter, defaultdict
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from app.config.constants import AppointmentStatus, ReportType
from app.services.progress import average

SESSION_RATE = 150
MOOD_WINDOW = timedelta(days=7)

MoodSeries = Dict[int, List[Tuple[date, int]]]


def percent(value: int, total: int) -> int:
    return int(round(value / total * 100)) if total else 0


def period_label(start: date, end: date) -> str:
    return f"{start.isoformat()} - {end.isoformat()}"


def _details(counts: Dict[str, int]) -> List[Dict[str, Any]]:
    total = sum(counts.values())
    return [
        {"metric": metric, "value": value, "percentage": percent(value, total)}
        for metric, value in counts.items()
    ]


def _in_period(appointments: Sequence, start: date, end: date) -> list:
    return [a for a in appointments if start <= a.appointment_date <= end]


def _with_status(appointments: Sequence, status: AppointmentStatus) -> list:
    return [a for a in appointments if a.status == status.value]


def early_and_recent_mood(
    entries: Sequence[Tuple[date, int]], start: date, end: date
) -> Optional[Tuple[float, float]]:
    """
    Average mood at the start and at the end of the period.

    Entries up to a week either side of the period are considered; fewer than
    two of them means there is nothing to compare and None is returned.
    """
    window = [(d, s) for d, s in entries if start - MOOD_WINDOW <= d <= end + MOOD_WINDOW]
    if len(window) < 2:
        return None
    # a side with no entries averages to 0.0, so one-sided data reads as a full swing
    early = average(s for d, s in window if d < start + MOOD_WINDOW)
    recent = average(s for d, s in window if d > end - MOOD_WINDOW)
    return early, recent


def classify_improvement(improvement: float) -> str:
    if improvement >= 2:
        return "Significant Improvement"
    if improvement >= 1:
        return "Moderate Improvement"
    if improvement >= -0.5:
        return "Stable/Maintained"
    return "Needs Additional Support"


def classify_outcome(early: float, recent: float) -> str:
    improvement = recent - early
    if recent >= 8 and improvement >= 3:
        return "Fully Recovered"
    if improvement >= 2:
        return "Significantly Improved"
    if improvement >= 1:
        return "Moderately Improved"
    return "Minimal Improvement"


def session_summary(appointments: Sequence, moods: MoodSeries, start: date, end: date) -> Dict[str, Any]:
    period = _in_period(appointments, start, end)
    completed = _with_status(period, AppointmentStatus.COMPLETED)
    by_type = Counter(a.type.capitalize() for a in completed)
    return {
        "title": "Session Summary Report",
        "period": period_label(start, end),
        "total_sessions": len(period),
        "completed_sessions": len(completed),
        "cancelled_sessions": len(_with_status(period, AppointmentStatus.CANCELLED)),
        "no_show_sessions": len(_with_status(period, AppointmentStatus.NO_SHOW)),
        "average_duration_minutes": int(round(average(a.duration_minutes or 0 for a in period))),
        "clients_seen": len({a.patient_id for a in period}),
        "details": _details(dict(by_type)),
    }


def client_progress(appointments: Sequence, moods: MoodSeries, start: date, end: date) -> Dict[str, Any]:
    clients = {a.patient_id for a in appointments}
    active = {a.patient_id for a in appointments if a.appointment_date >= start}
    categories = {
        "Significant Improvement": 0,
        "Moderate Improvement": 0,
        "Stable/Maintained": 0,
        "Needs Additional Support": 0,
    }
    for patient_id in clients:
        pair = early_and_recent_mood(moods.get(patient_id, []), start, end)
        if pair is None:
            continue
        early, recent = pair
        categories[classify_improvement(recent - early)] += 1
    return {
        "title": "Client Progress Report",
        "period": period_label(start, end),
        "total_clients": len(clients),
        "active_clients": len(active),
        "improved_clients": categories["Significant Improvement"] + categories["Moderate Improvement"],
        "stable_clients": categories["Stable/Maintained"],
        "needs_support_clients": categories["Needs Additional Support"],
        "details": _details(categories),
    }


def monthly_overview(appointments: Sequence, moods: MoodSeries, start: date, end: date) -> Dict[str, Any]:
    completed = _with_status(_in_period(appointments, start, end), AppointmentStatus.COMPLETED)
    first_seen: Dict[int, date] = {}
    for a in sorted(appointments, key=lambda a: a.appointment_date):
        first_seen.setdefault(a.patient_id, a.appointment_date)
    new_clients = {pid for pid, first in first_seen.items() if start <= first <= end}

    weeks: Dict[Tuple[int, int], int] = defaultdict(int)
    for a in completed:
        iso = a.appointment_date.isocalendar()
        weeks[(iso[0], iso[1])] += 1
    weekly = {f"Week {i}": weeks[key] for i, key in enumerate(sorted(weeks), start=1)}

    clients = {a.patient_id for a in completed}
    return {
        "title": "Monthly Overview Report",
        "period": period_label(start, end),
        "total_sessions": len(completed),
        "total_hours": int(round(sum(a.duration_minutes or 0 for a in completed) / 60)),
        "total_revenue": len(completed) * SESSION_RATE,
        "new_clients": len(new_clients),
        "average_sessions_per_client": round(len(completed) / len(clients), 1) if clients else 0,
        "details": _details(weekly),
    }


def attendance_report(appointments: Sequence, moods: MoodSeries, start: date, end: date) -> Dict[str, Any]:
    period = _in_period(appointments, start, end)
    scheduled = len(period)
    attended = len(_with_status(period, AppointmentStatus.COMPLETED))
    cancelled = len(_with_status(period, AppointmentStatus.CANCELLED))
    no_shows = len(_with_status(period, AppointmentStatus.NO_SHOW))
    rate = f"{attended / scheduled * 100:.1f}" if scheduled else "0.0"
    return {
        "title": "Attendance Report",
        "period": period_label(start, end),
        "total_scheduled": scheduled,
        "total_attended": attended,
        "total_cancelled": cancelled,
        "total_no_shows": no_shows,
        "attendance_rate": f"{rate}%",
        "details": [
            {"metric": "Attended Sessions", "value": attended, "percentage": percent(attended, scheduled)},
            {"metric": "Cancelled by Client", "value": cancelled, "percentage": percent(cancelled, scheduled)},
            {"metric": "No Shows", "value": no_shows, "percentage": percent(no_shows, scheduled)},
        ],
    }


def treatment_outcomes(appointments: Sequence, moods: MoodSeries, start: date, end: date) -> Dict[str, Any]:
    completed = _with_status(_in_period(appointments, start, end), AppointmentStatus.COMPLETED)
    sessions = Counter(a.patient_id for a in completed)
    outcomes = {
        "Fully Recovered": 0,
        "Significantly Improved": 0,
        "Moderately Improved": 0,
        "Minimal Improvement": 0,
    }
    for patient_id in {a.patient_id for a in appointments}:
        pair = early_and_recent_mood(moods.get(patient_id, []), start, end)
        if pair is None:
            continue
        outcomes[classify_outcome(*pair)] += 1

    rated = sum(outcomes.values())
    successful = rated - outcomes["Minimal Improvement"]
    return {
        "title": "Treatment Outcomes Report",
        "period": period_label(start, end),
        "total_clients": len(sessions),
        "completed_treatment": outcomes["Fully Recovered"],
        "ongoing_treatment": max(0, len(sessions) - outcomes["Fully Recovered"]),
        "average_sessions_per_client": int(round(average(sessions.values()))),
        "success_rate": f"{percent(successful, rated)}%",
        "details": _details(outcomes),
    }


REPORT_BUILDERS: Dict[str, Callable[..., Dict[str, Any]]] = {
    ReportType.SESSION_SUMMARY.value: session_summary,
    ReportType.CLIENT_PROGRESS.value: client_progress,
    ReportType.MONTHLY_OVERVIEW.value: monthly_overview,
    ReportType.ATTENDANCE.value: attendance_report,
    ReportType.TREATMENT_OUTCOMES.value: treatment_outcomes,
}


def build_report(report_type: str, appointments: Sequence, moods: MoodSeries, start: date, end: date) -> Dict[str, Any]:
    """Raises ``KeyError`` for an unknown report type."""
    return REPORT_BUILDERS[report_type](appointments, moods, start, end)
