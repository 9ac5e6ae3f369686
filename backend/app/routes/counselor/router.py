import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import Role, ResourceType
from app.core.middleware import get_db, require_roles
from app.db.crud.appointment import (
    create_provider_session,
    get_provider_clients,
    get_provider_sessions,
    update_provider_session,
)
from app.db.crud.community import get_pending_posts, moderate_post, edit_post, delete_post
from app.db.crud.email_log import get_email_logs, log_custom_email
from app.db.crud.report import generate_report
from app.db.crud.resource import get_author_resources, create_resource, update_resource, delete_resource
from app.db.models.user import UserModel
from app.schemas.appointment import Appointment, AppointmentListResponse
from app.schemas.community import (
    CommunityPost,
    CommunityPostListResponse,
    CommunityPostResponse,
    ModerationAction,
    PostEdit,
)
from app.schemas.counselor import (
    ClientListResponse,
    EmailLog,
    EmailLogListResponse,
    EmailRequest,
    Report,
    SessionCreate,
    SessionUpdate,
)
from app.schemas.resource import Resource, ResourceListResponse, ResourceResponse, ResourceUpdate
from app.schemas.shared import MessageResponse
from app.services import email
from app.services.notifications import notifications_enabled, queue_status_update
from app.services.storage import save_upload, delete_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/counselor", tags=["counselor"])

counselor_only = require_roles([Role.COUNSELOR])


# ------------------------------------------------------------------ moderation -----
@router.get("/moderation", response_model=CommunityPostListResponse, dependencies=[Depends(counselor_only)])
async def pending_posts(db: AsyncSession = Depends(get_db)):
    return {"posts": await get_pending_posts(db)}


@router.post("/moderation", response_model=CommunityPostResponse)
async def moderate(
    data: ModerationAction,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    post = await moderate_post(db, current_user.id, data)
    return CommunityPostResponse(post=CommunityPost.model_validate(post), message=f"Post {post.status}")


@router.put("/moderation", response_model=CommunityPostResponse)
async def edit_pending_post(
    data: PostEdit,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    post = await edit_post(db, current_user.id, data)
    return CommunityPostResponse(post=CommunityPost.model_validate(post), message="Post updated")


@router.delete("/moderation", response_model=MessageResponse)
async def remove_post(
    post_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    await delete_post(db, current_user.id, post_id)
    return MessageResponse(message="Post deleted")


# ------------------------------------------------------------------- resources -----
@router.get("/resources", response_model=ResourceListResponse)
async def own_resources(
    type: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    return {"resources": await get_author_resources(db, current_user.id, type, category)}


@router.post("/resources", response_model=ResourceResponse, status_code=status.HTTP_201_CREATED)
async def upload_resource(
    title: str = Form(..., min_length=1, max_length=200),
    description: str = Form(...),
    type: ResourceType = Form(...),
    category: str = Form(..., min_length=1, max_length=50),
    content: Optional[str] = Form(default=None),
    url: Optional[str] = Form(default=None),
    file: Optional[UploadFile] = File(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    """Create a resource, optionally with an uploaded file"""
    file_path = None
    if file is not None and file.filename:
        file_path = await save_upload(file)
    try:
        resource = await create_resource(
            db,
            current_user.id,
            title=title,
            description=description,
            type=type.value,
            category=category,
            content=content or None,
            url=url or None,
            file_path=file_path,
        )
    except Exception:
        delete_upload(file_path)
        raise
    return ResourceResponse(resource=Resource.model_validate(resource), message="Resource created")


@router.put("/resources", response_model=ResourceResponse)
async def edit_resource(
    data: ResourceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    resource = await update_resource(db, current_user.id, data)
    return ResourceResponse(resource=Resource.model_validate(resource), message="Resource updated")


@router.delete("/resources", response_model=MessageResponse)
async def remove_resource(
    resource_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    file_path = await delete_resource(db, current_user.id, resource_id)
    delete_upload(file_path)
    return MessageResponse(message="Resource deleted")


# ---------------------------------------------------------- clients & sessions -----
@router.get("/clients", response_model=ClientListResponse)
async def clients(
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    return {"clients": await get_provider_clients(db, current_user.id)}


@router.get("/sessions", response_model=AppointmentListResponse)
async def sessions(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    on_date: Optional[date] = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    return {"appointments": await get_provider_sessions(db, current_user.id, status_filter, on_date)}


@router.post("/sessions", response_model=Appointment, status_code=status.HTTP_201_CREATED)
async def schedule_session(
    data: SessionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    return await create_provider_session(db, current_user, data)


@router.put("/sessions", response_model=Appointment)
async def update_session(
    data: SessionUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    appointment, previous_status = await update_provider_session(db, current_user, data)
    if previous_status:
        await queue_status_update(db, background_tasks, appointment, note=data.notes)
    return appointment


# --------------------------------------------------------------------- reports -----
@router.get("/reports", response_model=Report)
async def report(
    report_type: str = Query(..., alias="type"),
    date_from: Optional[date] = Query(default=None, alias="from"),
    date_to: Optional[date] = Query(default=None, alias="to"),
    client_id: Optional[int] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    return await generate_report(db, current_user.id, report_type, date_from, date_to, client_id)


# ----------------------------------------------------------------------- email -----
@router.post("/email", response_model=EmailLog, status_code=status.HTTP_201_CREATED)
async def email_patient(
    data: EmailRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    log, patient = await log_custom_email(db, current_user, data)
    if await notifications_enabled(db):
        background_tasks.add_task(
            email.send_custom_email,
            patient.email,
            patient.full_name,
            current_user.full_name,
            data.subject,
            data.message,
            data.appointment_id,
        )
    else:
        logger.info(f"Email notifications disabled; email log id={log.id} stored without sending")
    return log


@router.get("/email", response_model=EmailLogListResponse)
async def email_history(
    patient_id: Optional[int] = Query(default=None),
    appointment_id: Optional[int] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(counselor_only),
):
    return {"emails": await get_email_logs(db, current_user.id, patient_id, appointment_id)}
