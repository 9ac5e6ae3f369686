# tests/test_progress.py
from datetime import date, timedelta

import pytest

from app.services.progress import (
    detect_condition,
    extract_medications,
    mood_averages,
    mood_trend,
    progress_percent,
    weekly_mood_scores,
)

TODAY = date(2026, 3, 31)


def series(*scores):
    """Daily entries ending today, oldest first."""
    return [(TODAY - timedelta(days=len(scores) - 1 - i), s) for i, s in enumerate(scores)]


def test_mood_averages_use_first_and_last_seven():
    entries = series(2, 2, 2, 2, 2, 2, 2, 9, 9, 9, 9, 9, 9, 9)
    assert mood_averages(list(reversed(entries))) == (2.0, 9.0)


def test_mood_averages_overlap_with_few_entries():
    assert mood_averages(series(4, 6)) == (5.0, 5.0)
    assert mood_averages([]) == (0.0, 0.0)


@pytest.mark.parametrize(
    "recent, expected",
    [(8.0, 80), (0.0, 50), (10.0, 100), (7.3, 73)],
)
def test_progress_percent(recent, expected):
    assert progress_percent(recent) == expected


@pytest.mark.parametrize(
    "initial, recent, expected",
    [(3.0, 8.0, "improving"), (7.0, 4.0, "declining"), (5.0, 5.4, "stable"), (0.0, 0.0, "stable")],
)
def test_mood_trend(initial, recent, expected):
    assert mood_trend(initial, recent) == expected


def test_detect_condition_first_keyword_wins():
    assert detect_condition("Ongoing anxiety; some social avoidance") == "Generalized Anxiety Disorder"
    assert detect_condition("Symptoms of DEPRESSION and anxiety") == "Major Depression"
    assert detect_condition("Routine check-in") == "General Mental Health"
    assert detect_condition(None) == "General Mental Health"


def test_extract_medications_with_and_without_dose():
    notes = "Continue Sertraline 50mg. Lorazepam as needed."
    assert extract_medications(notes) == ["Sertraline 50mg", "Lorazepam"]
    assert extract_medications("No medication changes") == []


def test_weekly_scores_fill_empty_weeks_with_neutral():
    entries = [(TODAY, 9), (TODAY - timedelta(days=3), 7), (TODAY - timedelta(days=20), 2)]
    scores = weekly_mood_scores(entries, today=TODAY)
    assert len(scores) == 7
    assert scores[-1] == 8
    assert scores[-3] == 2
    assert scores[0] == 5
