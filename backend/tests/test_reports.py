# tests/test_reports.py
from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from app.services.reports import (
    build_report,
    classify_improvement,
    classify_outcome,
    early_and_recent_mood,
)

START = date(2026, 3, 1)
END = date(2026, 3, 31)


def appt(patient_id, day, status="completed", kind="individual", minutes=60):
    return SimpleNamespace(
        patient_id=patient_id,
        appointment_date=START + timedelta(days=day),
        status=status,
        type=kind,
        duration_minutes=minutes,
    )


APPOINTMENTS = [
    appt(1, 2),
    appt(1, 9, kind="family"),
    appt(2, 16),
    appt(2, 20, status="cancelled"),
    appt(3, 25, status="no-show"),
    appt(1, -40),
]

MOODS = {
    1: [(START, 3), (START + timedelta(days=1), 3), (END, 7), (END - timedelta(days=1), 7)],
    2: [(START, 6), (END, 6)],
    3: [(END, 4)],
}


def test_session_summary():
    report = build_report("session-summary", APPOINTMENTS, MOODS, START, END)
    assert report["total_sessions"] == 5
    assert report["completed_sessions"] == 3
    assert report["cancelled_sessions"] == 1
    assert report["no_show_sessions"] == 1
    assert report["clients_seen"] == 3
    assert report["period"] == "2026-03-01 - 2026-03-31"
    assert {d["metric"]: d["value"] for d in report["details"]} == {"Individual": 2, "Family": 1}


def test_attendance_report():
    report = build_report("attendance-report", APPOINTMENTS, MOODS, START, END)
    assert report["total_scheduled"] == 5
    assert report["total_attended"] == 3
    assert report["attendance_rate"] == "60.0%"
    assert report["details"][0] == {"metric": "Attended Sessions", "value": 3, "percentage": 60}


def test_monthly_overview_counts_revenue_and_new_clients():
    report = build_report("monthly-overview", APPOINTMENTS, MOODS, START, END)
    assert report["total_sessions"] == 3
    assert report["total_hours"] == 3
    assert report["total_revenue"] == 450
    # patient 1 was first seen before the period
    assert report["new_clients"] == 2
    assert report["average_sessions_per_client"] == 1.5


def test_client_progress_buckets():
    report = build_report("client-progress", APPOINTMENTS, MOODS, START, END)
    assert report["total_clients"] == 3
    assert report["improved_clients"] == 1
    assert report["stable_clients"] == 1
    assert report["needs_support_clients"] == 0


def test_treatment_outcomes():
    report = build_report("treatment-outcomes", APPOINTMENTS, MOODS, START, END)
    assert report["total_clients"] == 2
    assert report["success_rate"] == "50%"
    outcomes = {d["metric"]: d["value"] for d in report["details"]}
    assert outcomes["Significantly Improved"] == 1
    assert outcomes["Minimal Improvement"] == 1


def test_empty_period_has_zero_rates():
    report = build_report("attendance-report", [], {}, START, END)
    assert report["attendance_rate"] == "0.0%"
    assert all(d["percentage"] == 0 for d in report["details"])


def test_unknown_report_type():
    with pytest.raises(KeyError):
        build_report("revenue", APPOINTMENTS, MOODS, START, END)


def test_early_and_recent_need_two_entries():
    assert early_and_recent_mood([(END, 4)], START, END) is None
    assert early_and_recent_mood(MOODS[1], START, END) == (3.0, 7.0)


def test_early_and_recent_with_entries_on_one_side_only():
    recent_only = [(END, 9), (END - timedelta(days=1), 9)]
    early, recent = early_and_recent_mood(recent_only, START, END)
    assert (early, recent) == (0.0, 9.0)
    assert classify_outcome(early, recent) == "Fully Recovered"

    early_only = [(START, 6), (START + timedelta(days=2), 4)]
    assert early_and_recent_mood(early_only, START, END) == (5.0, 0.0)


@pytest.mark.parametrize(
    "improvement, expected",
    [
        (2.0, "Significant Improvement"),
        (1.0, "Moderate Improvement"),
        (-0.5, "Stable/Maintained"),
        (-1.0, "Needs Additional Support"),
    ],
)
def test_classify_improvement(improvement, expected):
    assert classify_improvement(improvement) == expected


def test_classify_outcome():
    assert classify_outcome(5.0, 8.0) == "Fully Recovered"
    assert classify_outcome(4.0, 6.0) == "Significantly Improved"
    assert classify_outcome(4.0, 5.0) == "Moderately Improved"
    assert classify_outcome(6.0, 6.0) == "Minimal Improvement"
