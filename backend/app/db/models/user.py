# app/db/models/user.py
from sqlalchemy import Column, Integer, String, Date, Boolean, DateTime, func
from sqlalchemy.orm import relationship
from app.db.base import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    full_name = Column(String(100), nullable=False)
    phone = Column(String(30))
    date_of_birth = Column(Date)
    role = Column(String(20), nullable=False)  # 'patient', 'psychiatrist', 'counselor', 'admin'
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    mood_entries = relationship(
        "MoodEntryModel",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    treatment_plan = relationship(
        "TreatmentPlanModel",
        foreign_keys="TreatmentPlanModel.patient_id",
        back_populates="patient",
        uselist=False,
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<UserModel(id={self.id}, username={self.username}, role={self.role})>"
