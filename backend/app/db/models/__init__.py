from .user import UserModel
from .appointment import AppointmentModel
from .message import ConversationModel, MessageModel
from .mood import MoodEntryModel
from .community import CommunityPostModel
from .resource import ResourceModel, ResourceLikeModel, ResourceDownloadModel
from .clinical import ClinicalNoteModel, TreatmentPlanModel
from .admin import EmailLogModel, SystemSettingModel

__all__ = [
    "UserModel",
    "AppointmentModel",
    "ConversationModel",
    "MessageModel",
    "MoodEntryModel",
    "CommunityPostModel",
    "ResourceModel",
    "ResourceLikeModel",
    "ResourceDownloadModel",
    "ClinicalNoteModel",
    "TreatmentPlanModel",
    "EmailLogModel",
    "SystemSettingModel",
]
