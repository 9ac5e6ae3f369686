import logging
from datetime import date
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import PROVIDER_ROLES, Role
from app.core.middleware import get_db, require_roles
from app.db.crud.clinical import (
    create_note,
    get_notes,
    get_treatment_plan,
    require_patient,
    upsert_treatment_plan,
)
from app.db.crud.patient import export_patient_data, get_progress_detail, get_progress_summaries
from app.db.crud.user import create_user, delete_patient_account, get_users, update_user
from app.db.models.user import UserModel
from app.schemas.patient import (
    ClinicalNote,
    ClinicalNoteCreate,
    ClinicalNoteListResponse,
    PatientCreate,
    PatientListResponse,
    ProfileResponse,
    ProgressDetailResponse,
    ProgressListResponse,
    TreatmentPlanResponse,
    TreatmentPlanUpsert,
)
from app.schemas.register_request import ProfileUpdateRequest
from app.schemas.shared import MessageResponse, UserOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["patients"])

patient_only = require_roles([Role.PATIENT])
providers_only = require_roles(PROVIDER_ROLES)


@router.get(
    "",
    response_model=PatientListResponse,
    dependencies=[Depends(require_roles([*PROVIDER_ROLES, Role.ADMIN]))],
)
async def list_patients(
    search: Optional[str] = Query(default=None),
    active: Optional[bool] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return {"patients": await get_users(db, role=Role.PATIENT.value, search=search, active=active)}


@router.post(
    "",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles([Role.ADMIN]))],
)
async def add_patient(data: PatientCreate, db: AsyncSession = Depends(get_db)):
    return await create_user(
        db,
        username=data.username,
        email=data.email,
        password=data.password,
        full_name=data.name,
        role=Role.PATIENT.value,
        phone=data.phone,
        date_of_birth=data.date_of_birth,
    )


# --------------------------------------------------------------------- profile -----
@router.get("/profile", response_model=ProfileResponse)
async def read_profile(current_user: UserModel = Depends(patient_only)):
    return ProfileResponse(profile=UserOut.model_validate(current_user))


@router.put("/profile", response_model=ProfileResponse)
async def edit_profile(
    data: ProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(patient_only),
):
    user = await update_user(
        db,
        current_user,
        full_name=data.name,
        email=data.email,
        phone=data.phone,
        date_of_birth=data.date_of_birth,
    )
    return ProfileResponse(profile=UserOut.model_validate(user), message="Profile updated")


@router.delete("/delete-account", response_model=MessageResponse)
async def delete_account(
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(patient_only),
):
    """Remove the caller and everything they own"""
    if not await delete_patient_account(db, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return MessageResponse(message="Account deleted")


@router.get("/export-data")
async def export_data(
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(patient_only),
):
    data = await export_patient_data(db, current_user)
    filename = f"mindcare-data-{current_user.id}-{date.today().isoformat()}.json"
    return JSONResponse(
        content=jsonable_encoder(data),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------------------------------------------------------------- clinical notes -----
@router.get("/notes", response_model=ClinicalNoteListResponse, dependencies=[Depends(providers_only)])
async def list_notes(patient_id: int = Query(...), db: AsyncSession = Depends(get_db)):
    await require_patient(db, patient_id)
    return {"notes": await get_notes(db, patient_id)}


@router.post("/notes", response_model=ClinicalNote, status_code=status.HTTP_201_CREATED)
async def add_note(
    data: ClinicalNoteCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(providers_only),
):
    note = await create_note(db, data.patient_id, current_user, data.note_content)
    return ClinicalNote(
        id=note.id,
        patient_id=note.patient_id,
        provider_id=note.provider_id,
        note_content=note.note_content,
        created_at=note.created_at,
        provider_name=current_user.full_name,
    )


@router.get("/treatment-plan", response_model=TreatmentPlanResponse, dependencies=[Depends(providers_only)])
async def read_treatment_plan(patient_id: int = Query(...), db: AsyncSession = Depends(get_db)):
    await require_patient(db, patient_id)
    return {"treatment_plan": await get_treatment_plan(db, patient_id)}


@router.put("/treatment-plan", response_model=TreatmentPlanResponse)
async def save_treatment_plan(
    data: TreatmentPlanUpsert,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(providers_only),
):
    return {"treatment_plan": await upsert_treatment_plan(db, current_user, data)}


# -------------------------------------------------------------------- progress -----
@router.get(
    "/progress",
    response_model=Union[ProgressDetailResponse, ProgressListResponse],
    dependencies=[Depends(require_roles([Role.PSYCHIATRIST, Role.ADMIN]))],
)
async def patient_progress(
    patient_id: Optional[int] = Query(default=None),
    search: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    """
    Without ``patient_id``: a progress summary of every active patient.
    With it: weekly mood scores, medications and recent notes for that patient.
    """
    if patient_id is not None:
        return ProgressDetailResponse(patient=await get_progress_detail(db, patient_id))
    return ProgressListResponse(patients=await get_progress_summaries(db, search))
