# app/services/progress.py
"""
Mood-based progress scoring used by the patient progress views.

Everything here is pure: callers load mood entries and notes, these helpers
turn them into the numbers shown to psychiatrists.
"""
import re
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from app.config.constants import CONDITION_KEYWORDS, DEFAULT_CONDITION, KNOWN_MEDICATIONS

NEUTRAL_MOOD = 5
TREND_THRESHOLD = 0.5
SAMPLE_SIZE = 7
WEEKS_SHOWN = 7


def average(values: Iterable[float]) -> float:
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


def mood_averages(scores_by_date: Sequence[Tuple[date, int]]) -> Tuple[float, float]:
    """
    Return (initial, recent) averages over the first and last seven entries.

    Args:
        scores_by_date: (entry_date, mood_score) pairs in any order

    Returns:
        Averages rounded to two decimals, 0.0 when there are no entries
    """
    ordered = sorted(scores_by_date, key=lambda pair: pair[0])
    initial = average(score for _, score in ordered[:SAMPLE_SIZE])
    recent = average(score for _, score in ordered[-SAMPLE_SIZE:])
    return round(initial, 2), round(recent, 2)


def progress_percent(recent_mood: float) -> int:
    """Recent mood on a 0-100 scale; missing data counts as a neutral mood."""
    mood = recent_mood or NEUTRAL_MOOD
    return int(round(min(100.0, max(0.0, mood / 10 * 100))))


def mood_trend(initial_mood: float, recent_mood: float) -> str:
    improvement = (recent_mood or NEUTRAL_MOOD) - (initial_mood or NEUTRAL_MOOD)
    if improvement > TREND_THRESHOLD:
        return "improving"
    if improvement < -TREND_THRESHOLD:
        return "declining"
    return "stable"


def detect_condition(notes: Optional[str]) -> str:
    if not notes:
        return DEFAULT_CONDITION
    lowered = notes.lower()
    for keyword, label in CONDITION_KEYWORDS:
        if keyword in lowered:
            return label
    return DEFAULT_CONDITION


def extract_medications(notes: Optional[str]) -> List[str]:
    """Known medication names mentioned in ``notes``, with a dosage when one follows the name."""
    if not notes:
        return []
    lowered = notes.lower()
    medications = []
    for med in KNOWN_MEDICATIONS:
        if med not in lowered:
            continue
        match = re.search(rf"{med}\s+(\d+(?:\.\d+)?\s*mg)", lowered, re.IGNORECASE)
        name = med.capitalize()
        medications.append(f"{name} {match.group(1)}" if match else name)
    return medications


def weekly_mood_scores(
    scores_by_date: Sequence[Tuple[date, int]],
    today: Optional[date] = None,
    weeks: int = WEEKS_SHOWN,
) -> List[int]:
    """
    Rounded weekly mood averages, oldest week first, the last week ending today.
    A week without entries scores the neutral mood.
    """
    today = today or date.today()
    scores = []
    for week in range(weeks):
        week_end = today - timedelta(days=7 * (weeks - 1 - week))
        week_start = week_end - timedelta(days=6)
        in_week = [score for day, score in scores_by_date if week_start <= day <= week_end]
        scores.append(int(round(average(in_week))) if in_week else NEUTRAL_MOOD)
    return scores
