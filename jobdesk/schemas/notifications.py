"""Pydantic schemas for notification triggers and gateway settings."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from .base import JobDeskBaseModel


# =============================================================================
# NOTIFICATION TRIGGERS
# =============================================================================


class OnboardingNotificationRequest(JobDeskBaseModel):
    profile_id: UUID = Field(..., alias="profileId")


class TaskNotificationRequest(JobDeskBaseModel):
    """Explicit recipients; omitted lists fall back to the stored ones."""

    task_id: UUID = Field(..., alias="taskId")
    assignee_ids: list[UUID] | None = Field(default=None, alias="assigneeIds")
    watcher_ids: list[UUID] | None = Field(default=None, alias="watcherIds")


class TaskRevisionNotificationRequest(JobDeskBaseModel):
    task_id: UUID = Field(..., alias="taskId")
    feedback: str = ""


class NotificationResultResponse(JobDeskBaseModel):
    """Mirror of ``NotificationResult``."""

    ok: bool = True
    sent: int = 0
    failed: int = 0
    skipped: str | None = None


# =============================================================================
# SYSTEM SETTINGS
# =============================================================================


class WhatsAppTemplates(JobDeskBaseModel):
    onboarding: str | None = None
    task_assigned: str | None = None
    task_watcher: str | None = None
    task_updated: str | None = None


class SystemSettingsResponse(JobDeskBaseModel):
    """Settings as shown to admins. The token is never returned."""

    whatsapp_instance_id: str | None = None
    whatsapp_token: str | None = Field(
        default=None, description="Masked when a token is stored"
    )
    whatsapp_configured: bool = False
    templates: WhatsAppTemplates
    defaults: WhatsAppTemplates
    updated_at: datetime | None = None


class SystemSettingsUpdateRequest(JobDeskBaseModel):
    """Partial update. Sending the mask back keeps the stored token."""

    whatsapp_instance_id: str | None = None
    whatsapp_token: str | None = None
    templates: WhatsAppTemplates = Field(default_factory=WhatsAppTemplates)


class ConnectionTestRequest(JobDeskBaseModel):
    """Credentials to check; omitted values use the stored ones."""

    whatsapp_instance_id: str | None = None
    whatsapp_token: str | None = None


class ConnectionTestResponse(JobDeskBaseModel):
    ok: bool
    error: str | None = None
