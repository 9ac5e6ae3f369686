# app/db/crud/clinical.py
import logging
from typing import List, Optional, Dict, Any

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import Role
from app.db.crud.user import get_active_user
from app.db.models.clinical import ClinicalNoteModel, TreatmentPlanModel
from app.db.models.user import UserModel
from app.schemas.patient import TreatmentPlanUpsert

logger = logging.getLogger(__name__)

RECENT_NOTES = 10


async def require_patient(db: AsyncSession, patient_id: int) -> UserModel:
    patient = await get_active_user(db, patient_id, Role.PATIENT.value)
    if not patient:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return patient


async def get_notes(db: AsyncSession, patient_id: int, limit: int = RECENT_NOTES) -> List[Dict[str, Any]]:
    """Latest clinical notes for a patient with the writing provider's name."""
    result = await db.execute(
        select(ClinicalNoteModel, UserModel.full_name)
        .outerjoin(UserModel, ClinicalNoteModel.provider_id == UserModel.id)
        .where(ClinicalNoteModel.patient_id == patient_id)
        .order_by(ClinicalNoteModel.created_at.desc(), ClinicalNoteModel.id.desc())
        .limit(limit)
    )
    return [
        {
            "id": note.id,
            "patient_id": note.patient_id,
            "provider_id": note.provider_id,
            "note_content": note.note_content,
            "created_at": note.created_at,
            "provider_name": provider_name,
        }
        for note, provider_name in result.all()
    ]


def add_note(db: AsyncSession, patient_id: int, provider_id: int, content: str) -> ClinicalNoteModel:
    """Stage a note in the current transaction; the caller commits."""
    note = ClinicalNoteModel(patient_id=patient_id, provider_id=provider_id, note_content=content)
    db.add(note)
    return note


async def create_note(db: AsyncSession, patient_id: int, provider: UserModel, content: str) -> ClinicalNoteModel:
    await require_patient(db, patient_id)
    note = add_note(db, patient_id, provider.id, content)
    await db.commit()
    await db.refresh(note)
    logger.info(f"Clinical note id={note.id} added for patient_id={patient_id} by provider_id={provider.id}")
    return note


async def get_treatment_plan(db: AsyncSession, patient_id: int) -> Optional[Dict[str, Any]]:
    result = await db.execute(
        select(TreatmentPlanModel, UserModel.full_name)
        .outerjoin(UserModel, TreatmentPlanModel.updated_by == UserModel.id)
        .where(TreatmentPlanModel.patient_id == patient_id)
    )
    row = result.first()
    if not row:
        return None
    plan, updated_by_name = row
    data = {column.name: getattr(plan, column.name) for column in TreatmentPlanModel.__table__.columns}
    data["updated_by_name"] = updated_by_name
    return data


async def upsert_treatment_plan(db: AsyncSession, provider: UserModel, data: TreatmentPlanUpsert) -> Dict[str, Any]:
    """
    Create or replace a patient's treatment plan.

    A clinical note summarising the plan is written in the same transaction.
    """
    await require_patient(db, data.patient_id)
    plan = (
        await db.execute(select(TreatmentPlanModel).where(TreatmentPlanModel.patient_id == data.patient_id))
    ).scalar_one_or_none()
    try:
        if plan is None:
            plan = TreatmentPlanModel(
                patient_id=data.patient_id,
                treatment_goal=data.treatment_goal,
                session_frequency=data.session_frequency,
                created_by=provider.id,
                updated_by=provider.id,
            )
            db.add(plan)
        else:
            plan.treatment_goal = data.treatment_goal
            plan.session_frequency = data.session_frequency
            plan.updated_by = provider.id
        add_note(
            db,
            data.patient_id,
            provider.id,
            f"Treatment plan updated: Goal - {data.treatment_goal}, Frequency - {data.session_frequency}",
        )
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Treatment plan upsert failed for patient_id={data.patient_id}: {e}", exc_info=True)
        raise

    logger.info(f"Treatment plan for patient_id={data.patient_id} saved by provider_id={provider.id}")
    return await get_treatment_plan(db, data.patient_id)
