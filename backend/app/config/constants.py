from enum import Enum


class Role(str, Enum):
    PATIENT = "patient"
    PSYCHIATRIST = "psychiatrist"
    COUNSELOR = "counselor"
    ADMIN = "admin"


class AppointmentType(str, Enum):
    INDIVIDUAL = "individual"
    GROUP = "group"
    FAMILY = "family"
    CONSULTATION = "consultation"


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class PostStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ResourceType(str, Enum):
    ARTICLE = "article"
    VIDEO = "video"
    GUIDE = "guide"
    WORKSHEET = "worksheet"
    AUDIO = "audio"


class ReportType(str, Enum):
    SESSION_SUMMARY = "session-summary"
    CLIENT_PROGRESS = "client-progress"
    MONTHLY_OVERVIEW = "monthly-overview"
    ATTENDANCE = "attendance-report"
    TREATMENT_OUTCOMES = "treatment-outcomes"


PROVIDER_ROLES = (Role.PSYCHIATRIST.value, Role.COUNSELOR.value)

# Slots held by these statuses block another booking at the same time
ACTIVE_APPOINTMENT_STATUSES = (
    AppointmentStatus.PENDING.value,
    AppointmentStatus.CONFIRMED.value,
)

DEFAULT_SYSTEM_SETTINGS = {
    "site_name": "MindCare Hub",
    "site_description": "Comprehensive mental health support for Malaysia",
    "maintenance_mode": False,
    "user_registration": True,
    "email_notifications": True,
    "sms_notifications": False,
    "data_retention_days": 365,
    "session_timeout_minutes": 30,
    "max_file_size_mb": 10,
    "allowed_file_types": "pdf,doc,docx,jpg,png,mp4",
    "backup_frequency": "daily",
    "security_level": "high",
}

# Keyword -> condition label, checked in order against the latest session notes
CONDITION_KEYWORDS = [
    ("depression", "Major Depression"),
    ("anxiety", "Generalized Anxiety Disorder"),
    ("ptsd", "PTSD"),
    ("bipolar", "Bipolar Disorder"),
    ("social", "Social Anxiety"),
]
DEFAULT_CONDITION = "General Mental Health"

KNOWN_MEDICATIONS = [
    "sertraline",
    "escitalopram",
    "fluoxetine",
    "paroxetine",
    "lorazepam",
    "alprazolam",
    "clonazepam",
    "lithium",
    "quetiapine",
    "aripiprazole",
    "prazosin",
]

NO_MESSAGES_PLACEHOLDER = "No messages yet"
