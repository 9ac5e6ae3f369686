# app/db/crud/user.py
import logging
import random
import re
import time
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import select, func, or_, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import PROVIDER_ROLES, Role
from app.core.auth import get_password_hash
from app.db.models.user import UserModel
from app.db.models.appointment import AppointmentModel
from app.db.models.message import ConversationModel, MessageModel
from app.db.models.mood import MoodEntryModel
from app.db.models.community import CommunityPostModel
from app.db.models.resource import ResourceLikeModel, ResourceDownloadModel
from app.db.models.clinical import ClinicalNoteModel, TreatmentPlanModel
from app.db.models.admin import EmailLogModel

logger = logging.getLogger(__name__)

USERNAME_MAX_LENGTH = 20
USERNAME_ATTEMPTS = 10
_USERNAME_STRIP = re.compile(r"[^a-z0-9.]")


def username_base(full_name: str, email: str) -> str:
    """
    Derive a username from a display name.

    Lowercases, turns whitespace into dots and drops everything outside
    ``[a-z0-9.]``. Falls back to the email's local part when nothing is left.
    """
    base = re.sub(r"\s+", ".", (full_name or "").strip().lower())
    base = re.sub(r"\.{2,}", ".", _USERNAME_STRIP.sub("", base))[:USERNAME_MAX_LENGTH].strip(".")
    if not base:
        local = (email or "").split("@")[0].lower()
        base = _USERNAME_STRIP.sub("", local)[:USERNAME_MAX_LENGTH]
    return base or "user"


async def username_exists(db: AsyncSession, username: str) -> bool:
    return await db.scalar(select(func.count(UserModel.id)).where(UserModel.username == username)) > 0


async def generate_unique_username(db: AsyncSession, full_name: str, email: str) -> str:
    """
    Build a username that is not taken yet.

    Tries the bare base name, then up to ten random three digit suffixes,
    and finally a timestamp suffix.

    Args:
        db: Database session
        full_name: Display name the username is derived from
        email: Used when the name has no usable characters

    Returns:
        An available username
    """
    base = username_base(full_name, email)
    if not await username_exists(db, base):
        return base
    for _ in range(USERNAME_ATTEMPTS):
        candidate = f"{base}{random.randint(100, 999)}"
        if not await username_exists(db, candidate):
            return candidate
    candidate = f"{base}{int(time.time() * 1000) % 1_000_000}"
    logger.warning(f"Username suffixes exhausted for '{base}', using {candidate}")
    return candidate


async def get_user(db: AsyncSession, user_id: int) -> Optional[UserModel]:
    """
    Get a user by ID.

    Args:
        db: Database session
        user_id: User ID

    Returns:
        UserModel or None if not found
    """
    return await db.get(UserModel, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[UserModel]:
    result = await db.execute(select(UserModel).where(func.lower(UserModel.email) == email.lower()))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[UserModel]:
    result = await db.execute(select(UserModel).where(UserModel.username == username))
    return result.scalar_one_or_none()


async def get_active_user(db: AsyncSession, user_id: int, role: Optional[str] = None) -> Optional[UserModel]:
    """Active user by id, optionally restricted to one role."""
    query = select(UserModel).where(UserModel.id == user_id, UserModel.is_active.is_(True))
    if role:
        query = query.where(UserModel.role == role)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_users(
    db: AsyncSession,
    role: Optional[str] = None,
    search: Optional[str] = None,
    active: Optional[bool] = None,
) -> List[UserModel]:
    """
    Get users ordered by name with optional filtering.

    Args:
        db: Database session
        role: Filter by user role (optional)
        search: Case-insensitive match on name, email or username (optional)
        active: Filter by active flag (optional)

    Returns:
        List of UserModel objects
    """
    query = select(UserModel)
    if role:
        query = query.where(UserModel.role == role)
    if active is not None:
        query = query.where(UserModel.is_active.is_(active))
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                UserModel.full_name.ilike(pattern),
                UserModel.email.ilike(pattern),
                UserModel.username.ilike(pattern),
            )
        )
    result = await db.execute(query.order_by(UserModel.full_name, UserModel.id))
    return list(result.scalars().all())


async def get_all_users(db: AsyncSession) -> List[UserModel]:
    result = await db.execute(select(UserModel).order_by(UserModel.created_at.desc(), UserModel.id.desc()))
    return list(result.scalars().all())


async def get_providers(db: AsyncSession) -> List[UserModel]:
    """Active psychiatrists and counselors ordered by role, then name."""
    result = await db.execute(
        select(UserModel)
        .where(UserModel.role.in_(PROVIDER_ROLES), UserModel.is_active.is_(True))
        .order_by(UserModel.role, UserModel.full_name)
    )
    return list(result.scalars().all())


async def create_user(
    db: AsyncSession,
    *,
    username: str,
    email: str,
    password: str,
    full_name: str,
    role: str,
    phone: Optional[str] = None,
    date_of_birth=None,
    is_active: bool = True,
) -> UserModel:
    """
    Insert a user with a bcrypt hashed password.

    Raises:
        HTTPException: 409 when the email or username is already taken
    """
    if await get_user_by_email(db, email):
        logger.warning(f"Refusing to create user: email {email} already registered")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    if await username_exists(db, username):
        logger.warning(f"Refusing to create user: username {username} already taken")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    user = UserModel(
        username=username,
        email=email.lower(),
        password_hash=get_password_hash(password),
        full_name=full_name,
        role=role,
        phone=phone,
        date_of_birth=date_of_birth,
        is_active=is_active,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email or username already registered")

    await db.refresh(user)
    logger.info(f"Created {role} user id={user.id} username={user.username}")
    return user


async def update_user(
    db: AsyncSession,
    user: UserModel,
    *,
    full_name: Optional[str] = None,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    date_of_birth=None,
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> UserModel:
    """
    Update the given fields of ``user``; ``None`` keeps the current value.

    Raises:
        HTTPException: 409 when the new email belongs to another user
    """
    if email is not None and email.lower() != user.email.lower():
        other = await get_user_by_email(db, email)
        if other and other.id != user.id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")
        user.email = email.lower()
    if full_name is not None:
        user.full_name = full_name
    if phone is not None:
        user.phone = phone
    if date_of_birth is not None:
        user.date_of_birth = date_of_birth
    if role is not None:
        user.role = role
    if is_active is not None:
        user.is_active = is_active

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")
    await db.refresh(user)
    return user


async def set_password(db: AsyncSession, user: UserModel, new_password: str) -> None:
    user.password_hash = get_password_hash(new_password)
    await db.commit()
    logger.info(f"Password changed for user id={user.id}")


async def get_user_count(db: AsyncSession, role: Optional[str] = None) -> int:
    """
    Get the total count of users, optionally filtered by role.

    Args:
        db: Database session
        role: Filter by user role (optional)

    Returns:
        Total count of users
    """
    query = select(func.count(UserModel.id))

    if role:
        query = query.where(UserModel.role == role)

    result = await db.execute(query)
    return result.scalar_one()


async def delete_patient_account(db: AsyncSession, patient_id: int) -> bool:
    """
    Delete a patient and every row they own in one transaction.

    Args:
        db: Database session
        patient_id: User ID of the patient

    Returns:
        True if the patient was deleted, False if no such patient exists
    """
    patient = await get_active_user(db, patient_id, Role.PATIENT.value)
    if not patient:
        return False

    conversation_ids = select(ConversationModel.id).where(ConversationModel.patient_id == patient_id)
    statements = [
        delete(MoodEntryModel).where(MoodEntryModel.user_id == patient_id),
        delete(MessageModel).where(
            or_(
                MessageModel.conversation_id.in_(conversation_ids),
                MessageModel.sender_id == patient_id,
                MessageModel.receiver_id == patient_id,
            )
        ),
        delete(ConversationModel).where(ConversationModel.patient_id == patient_id),
        delete(EmailLogModel).where(
            EmailLogModel.appointment_id.in_(
                select(AppointmentModel.id).where(AppointmentModel.patient_id == patient_id)
            )
        ),
        delete(AppointmentModel).where(AppointmentModel.patient_id == patient_id),
        delete(ClinicalNoteModel).where(ClinicalNoteModel.patient_id == patient_id),
        delete(TreatmentPlanModel).where(TreatmentPlanModel.patient_id == patient_id),
        delete(CommunityPostModel).where(CommunityPostModel.user_id == patient_id),
        delete(ResourceLikeModel).where(ResourceLikeModel.user_id == patient_id),
        delete(ResourceDownloadModel).where(ResourceDownloadModel.user_id == patient_id),
        delete(UserModel).where(UserModel.id == patient_id),
    ]
    try:
        for statement in statements:
            await db.execute(statement.execution_options(synchronize_session=False))
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to delete account of patient_id={patient_id}: {e}", exc_info=True)
        raise

    logger.info(f"Deleted account and data of patient_id={patient_id}")
    return True
