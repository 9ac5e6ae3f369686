# backend/scripts/seed_database.py
import asyncio
import logging
import random
from datetime import date, time, timedelta
from typing import Dict

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

# Add project root to sys.path to allow importing from app
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend_dir))

from app.config.constants import AppointmentStatus, AppointmentType, PostStatus, ResourceType, Role  # noqa: E402
from app.config.settings import settings as app_settings  # noqa: E402
from app.core.auth import get_password_hash  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.crud.message import conversation_id_for  # noqa: E402
from app.db.models import (  # noqa: E402
    AppointmentModel,
    CommunityPostModel,
    ConversationModel,
    MessageModel,
    MoodEntryModel,
    ResourceModel,
    UserModel,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger("seed_database")

# --- Configuration for Seed Data ---
COMMON_PASSWORD = "MindCare123!"
MOOD_DAYS = 60

DEMO_USERS = [
    ("admin", "System Administrator", "admin@mindcare.my", Role.ADMIN),
    ("dr.aisyah", "Dr. Aisyah Rahman", "aisyah.rahman@mindcare.my", Role.PSYCHIATRIST),
    ("dr.kumar", "Dr. Kumar Selvam", "kumar.selvam@mindcare.my", Role.PSYCHIATRIST),
    ("siti.counselor", "Siti Nurhaliza", "siti.counselor@mindcare.my", Role.COUNSELOR),
    ("james.counselor", "James Tan", "james.tan@mindcare.my", Role.COUNSELOR),
    ("ahmad.patient", "Ahmad Faizal", "ahmad.faizal@mindcare.my", Role.PATIENT),
    ("mei.ling", "Lim Mei Ling", "mei.ling@mindcare.my", Role.PATIENT),
    ("priya.patient", "Priya Devi", "priya.devi@mindcare.my", Role.PATIENT),
]

SESSION_NOTES = [
    "Patient reports persistent worry and panic symptoms; anxiety management discussed.",
    "Low mood most days, reduced interest. Sertraline 50mg continued.",
    "Sleep has improved. Reviewed coping plan for work stress.",
    "Follow-up on trauma-focused work; patient engaged well.",
]

RESOURCES = [
    ("Understanding Anxiety", "What anxiety is and how it shows up day to day.", ResourceType.ARTICLE, "anxiety"),
    ("Box Breathing Guide", "A four-step breathing exercise for acute stress.", ResourceType.GUIDE, "stress"),
    ("Thought Record Worksheet", "Challenge unhelpful thoughts step by step.", ResourceType.WORKSHEET, "cbt"),
    ("Sleep Hygiene Basics", "Habits that support restful sleep.", ResourceType.ARTICLE, "sleep"),
]


async def clear_data(db: AsyncSession):
    logger.warning("Clearing existing data from every table...")
    for table in reversed(Base.metadata.sorted_tables):
        await db.execute(delete(table))
    await db.commit()
    logger.info("All data cleared.")


async def seed_users(db: AsyncSession) -> Dict[str, UserModel]:
    users: Dict[str, UserModel] = {}
    password_hash = get_password_hash(COMMON_PASSWORD)
    for username, full_name, email, role in DEMO_USERS:
        existing = await db.execute(select(UserModel).where(UserModel.email == email))
        user = existing.scalar_one_or_none()
        if user:
            logger.info(f"User {email} already exists, skipping")
        else:
            user = UserModel(
                username=username,
                email=email,
                password_hash=password_hash,
                full_name=full_name,
                role=role.value,
                phone=f"+60 12-{random.randint(100, 999)} {random.randint(1000, 9999)}",
                date_of_birth=date(random.randint(1970, 2002), random.randint(1, 12), random.randint(1, 28)),
            )
            db.add(user)
        users[username] = user
    await db.commit()
    logger.info(f"Seeded {len(users)} demo users (password: {COMMON_PASSWORD})")
    return users


async def seed_all_data(db: AsyncSession):
    users = await seed_users(db)
    patients = [u for u in users.values() if u.role == Role.PATIENT.value]
    providers = [u for u in users.values() if u.role in (Role.PSYCHIATRIST.value, Role.COUNSELOR.value)]
    psychiatrist = users["dr.aisyah"]
    today = date.today()

    # 1. Mood entries with a gentle upward drift
    for patient in patients:
        base = random.randint(3, 5)
        for day in range(MOOD_DAYS, 0, -3):
            drift = (MOOD_DAYS - day) // 20
            db.add(
                MoodEntryModel(
                    user_id=patient.id,
                    mood_score=max(1, min(10, base + drift + random.randint(-1, 1))),
                    anxiety_level=random.randint(2, 8),
                    stress_level=random.randint(2, 8),
                    sleep_hours=round(random.uniform(4.5, 8.5), 1),
                    entry_date=today - timedelta(days=day),
                )
            )

    # 2. Past and upcoming appointments
    for patient in patients:
        for offset in (-28, -14, -7, 7):
            provider = random.choice(providers)
            past = offset < 0
            db.add(
                AppointmentModel(
                    patient_id=patient.id,
                    provider_id=provider.id,
                    appointment_date=today + timedelta(days=offset),
                    appointment_time=time(random.choice([9, 10, 11, 14, 15, 16])),
                    type=random.choice(list(AppointmentType)).value,
                    status=AppointmentStatus.COMPLETED.value if past else AppointmentStatus.CONFIRMED.value,
                    notes=random.choice(SESSION_NOTES) if past else None,
                )
            )

    # 3. A conversation between each patient and the first psychiatrist
    for patient in patients:
        conversation = ConversationModel(
            id=conversation_id_for(patient.id, psychiatrist.id),
            patient_id=patient.id,
            psychiatrist_id=psychiatrist.id,
        )
        db.add(conversation)
        await db.flush()
        message = MessageModel(
            conversation_id=conversation.id,
            sender_id=patient.id,
            receiver_id=psychiatrist.id,
            content="Hi doctor, I wanted to share how this week has been going.",
        )
        db.add(message)
        await db.flush()
        conversation.last_message_id = message.id

    # 4. Resources and community posts
    counselor = users["siti.counselor"]
    for title, description, kind, category in RESOURCES:
        db.add(
            ResourceModel(
                title=title,
                description=description,
                content=description,
                category=category,
                type=kind.value,
                author_id=counselor.id,
                is_featured=category == "anxiety",
            )
        )
    db.add(
        CommunityPostModel(
            user_id=patients[0].id,
            title="Small wins this week",
            content="Managed a full week of morning walks. It really helps.",
            category="progress",
            is_anonymous=True,
            status=PostStatus.APPROVED.value,
            moderated_by=counselor.id,
        )
    )

    await db.commit()
    logger.info("Database seeding completed.")


async def main(should_clear: bool):
    logger.info(f"Connecting to database at: {app_settings.database_url}")
    engine = create_async_engine(str(app_settings.database_url))
    AsyncSessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with AsyncSessionLocal() as db:
        if should_clear:
            await clear_data(db)
        await seed_all_data(db)

    await engine.dispose()
    logger.info("Database connection closed.")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed the database with MindCare demo accounts and data.")
    parser.add_argument("--clear", action="store_true", help="Clear existing data before seeding.")
    args = parser.parse_args()
    asyncio.run(main(should_clear=args.clear))
