"""SQLAlchemy ORM Models for JobDesk."""

from .base import Base, TimestampMixin, UUIDMixin
from .models import (
    # Enums
    NotificationKind,
    WikiCategory,
    ProfileRole,
    TaskPriority,
    TaskStatus,
    # Personnel
    Profile,
    Team,
    TeamMember,
    # Tasks
    Task,
    TaskAssignment,
    TaskWatcher,
    # Wiki
    WikiArticle,
    # Notifications
    NotificationLog,
    SystemSettings,
)

__all__ = [
    # Base
    "Base",
    "UUIDMixin",
    "TimestampMixin",
    # Enums
    "ProfileRole",
    "TaskStatus",
    "TaskPriority",
    "NotificationKind",
    "WikiCategory",
    # Personnel
    "Profile",
    "Team",
    "TeamMember",
    # Tasks
    "Task",
    "TaskAssignment",
    "TaskWatcher",
    # Wiki
    "WikiArticle",
    # Notifications
    "NotificationLog",
    "SystemSettings",
]
