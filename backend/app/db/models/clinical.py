# app/db/models/clinical.py
from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class ClinicalNoteModel(Base):
    __tablename__ = "clinical_notes"

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    note_content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    provider = relationship("UserModel", foreign_keys=[provider_id])


class TreatmentPlanModel(Base):
    __tablename__ = "treatment_plans"

    id = Column(Integer, primary_key=True)
    patient_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    treatment_goal = Column(Text, nullable=False)
    session_frequency = Column(String(50), nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    patient = relationship("UserModel", foreign_keys=[patient_id], back_populates="treatment_plan")
    updater = relationship("UserModel", foreign_keys=[updated_by])
