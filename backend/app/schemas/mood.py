# app/schemas/mood.py
from datetime import date, datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field

Scale = Annotated[int, Field(ge=1, le=10)]


class MoodEntryCreate(BaseModel):
    mood_score: Scale
    anxiety_level: Optional[Scale] = None
    stress_level: Optional[Scale] = None
    sleep_hours: Optional[Annotated[float, Field(ge=0, le=24)]] = None
    notes: Optional[str] = None
    entry_date: date


class MoodEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    mood_score: int
    anxiety_level: Optional[int] = None
    stress_level: Optional[int] = None
    sleep_hours: Optional[float] = None
    notes: Optional[str] = None
    entry_date: date
    created_at: Optional[datetime] = None


class MoodEntryListResponse(BaseModel):
    entries: List[MoodEntry]


class MoodEntryResponse(BaseModel):
    entry: MoodEntry
