"""JobDesk API Schemas.

Schemas are organized by domain:
- base: Common config, errors, references
- personnel: Profiles and authentication
- tasks: Tasks and teams
- notifications: Notification triggers and gateway settings
- wiki: Knowledge-base articles
"""

from .base import (
    ErrorDetail,
    ErrorResponse,
    JobDeskBaseModel,
    ProfileRef,
    TimestampMixin,
)
from .notifications import (
    NotificationResultResponse,
    OnboardingNotificationRequest,
    SystemSettingsResponse,
    SystemSettingsUpdateRequest,
    TaskNotificationRequest,
    TaskRevisionNotificationRequest,
    ConnectionTestRequest,
    ConnectionTestResponse,
    WhatsAppTemplates,
)
from .personnel import (
    ChangePasswordRequest,
    DevLoginRequest,
    LoginRequest,
    ProfileCreate,
    ProfileCreatedResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    TokenResponse,
)
from .tasks import (
    TaskCreate,
    TaskMutationResponse,
    TaskResponse,
    TaskRevisionRequest,
    TaskStatusResponse,
    TaskStatusUpdate,
    TaskUpdate,
    TeamCreate,
    TeamMembersUpdate,
    TeamResponse,
)
from .wiki import (
    WikiArticleCreate,
    WikiArticleResponse,
    WikiArticleUpdate,
    WikiDraftResponse,
)

__all__ = [
    # Base
    "JobDeskBaseModel",
    "TimestampMixin",
    "ErrorDetail",
    "ErrorResponse",
    "ProfileRef",
    # Personnel
    "ProfileCreate",
    "ProfileUpdateRequest",
    "ProfileResponse",
    "ProfileCreatedResponse",
    "LoginRequest",
    "DevLoginRequest",
    "TokenResponse",
    "ChangePasswordRequest",
    # Tasks
    "TaskCreate",
    "TaskUpdate",
    "TaskStatusUpdate",
    "TaskRevisionRequest",
    "TaskResponse",
    "TaskMutationResponse",
    "TaskStatusResponse",
    # Teams
    "TeamCreate",
    "TeamMembersUpdate",
    "TeamResponse",
    # Wiki
    "WikiArticleCreate",
    "WikiArticleUpdate",
    "WikiArticleResponse",
    "WikiDraftResponse",
    # Notifications
    "OnboardingNotificationRequest",
    "TaskNotificationRequest",
    "TaskRevisionNotificationRequest",
    "NotificationResultResponse",
    "WhatsAppTemplates",
    "SystemSettingsResponse",
    "SystemSettingsUpdateRequest",
    "ConnectionTestRequest",
    "ConnectionTestResponse",
]
