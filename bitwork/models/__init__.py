"""ORM models for the Bitwork marketplace."""

from .application import APPLICATION_STATUSES, Application
from .base import Base
from .job import JOB_STATUSES, Job
from .message import Message
from .notification import NOTIFICATION_TYPES, Notification
from .profile import ROLES, Profile
from .saved_job import SavedJob
from .user_preference import THEMES, UserPreference

__all__ = [
    "Base",
    "Profile",
    "Job",
    "Application",
    "SavedJob",
    "Notification",
    "Message",
    "UserPreference",
    "ROLES",
    "JOB_STATUSES",
    "APPLICATION_STATUSES",
    "NOTIFICATION_TYPES",
    "THEMES",
]
