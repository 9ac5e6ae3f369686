# app/db/models/appointment.py
from sqlalchemy import (
    Column,
    Integer,
    Date,
    Time,
    DateTime,
    String,
    Text,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import relationship
from app.db.base import Base
from sqlalchemy.sql import func


class AppointmentModel(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    provider_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    type = Column(String(20), nullable=False)  # individual, group, family, consultation
    status = Column(
        String(20), default="pending", nullable=False
    )  # pending, confirmed, completed, cancelled, no-show
    notes = Column(Text, nullable=True)
    meeting_link = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Slot lookups for the conflict check
    __table_args__ = (
        Index("idx_appointments_provider_slot", "provider_id", "appointment_date", "appointment_time"),
    )

    # Relationships
    patient = relationship(
        "UserModel", foreign_keys=[patient_id], backref="patient_appointments"
    )
    provider = relationship(
        "UserModel", foreign_keys=[provider_id], backref="provider_appointments"
    )
