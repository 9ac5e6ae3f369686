# app/db/models/mood.py
from sqlalchemy import Column, Integer, Float, Text, Date, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base

class MoodEntryModel(Base):
    __tablename__ = "mood_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    mood_score = Column(Integer, nullable=False)  # 1-10
    anxiety_level = Column(Integer)  # 1-10
    stress_level = Column(Integer)  # 1-10
    sleep_hours = Column(Float)
    notes = Column(Text)
    entry_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("UserModel", back_populates="mood_entries")
