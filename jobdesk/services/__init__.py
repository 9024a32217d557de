"""Business logic services for JobDesk."""

from .notification_log import NotificationLogStore
from .notifications import NotificationDispatcher, NotificationResult, SkipReason
from .personnel import (
    AuthenticationError,
    DuplicateEmailError,
    InvalidPasswordError,
    PersonnelError,
    PersonnelService,
    ProfileInput,
    ProfileNotFoundError,
    ProfileUpdate,
    TemporaryPasswordExpiredError,
)
from .status_gate import apply_completion_gate, can_complete
from .system_settings import SettingsUpdate, SystemSettingsService, WhatsAppConfig
from .tasks import (
    InvalidOperationError,
    TaskDetail,
    TaskError,
    TaskInput,
    TaskNotFoundError,
    TaskService,
    TaskUpdateInput,
)
from .teams import InvalidTeamError, TeamInput, TeamNotFoundError, TeamService
from .wiki import (
    ArticleDraft,
    ArticleInput,
    InvalidArticleError,
    WikiArticleNotFoundError,
    WikiError,
    WikiService,
    convert_task_to_wiki,
    department_to_category,
)
from .whatsapp import (
    WhatsAppClient,
    WhatsAppDeliveryError,
    WhatsAppError,
    WhatsAppNotConfiguredError,
)

__all__ = [
    # Status workflow
    "apply_completion_gate",
    "can_complete",
    # Tasks
    "TaskService",
    "TaskError",
    "TaskNotFoundError",
    "InvalidOperationError",
    "TaskInput",
    "TaskUpdateInput",
    "TaskDetail",
    # Personnel
    "PersonnelService",
    "PersonnelError",
    "ProfileNotFoundError",
    "DuplicateEmailError",
    "InvalidPasswordError",
    "AuthenticationError",
    "TemporaryPasswordExpiredError",
    "ProfileInput",
    "ProfileUpdate",
    # Teams
    "TeamService",
    "TeamNotFoundError",
    "InvalidTeamError",
    "TeamInput",
    # Wiki
    "WikiService",
    "WikiError",
    "WikiArticleNotFoundError",
    "InvalidArticleError",
    "ArticleInput",
    "ArticleDraft",
    "convert_task_to_wiki",
    "department_to_category",
    # Notifications
    "NotificationDispatcher",
    "NotificationResult",
    "SkipReason",
    "NotificationLogStore",
    "SystemSettingsService",
    "SettingsUpdate",
    "WhatsAppConfig",
    "WhatsAppClient",
    "WhatsAppError",
    "WhatsAppNotConfiguredError",
    "WhatsAppDeliveryError",
]
