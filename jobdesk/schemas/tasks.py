"""Pydantic schemas for tasks and teams."""

from datetime import date
from uuid import UUID

from pydantic import Field

from ..models import TaskPriority, TaskStatus
from .base import JobDeskBaseModel, TimestampMixin
from .notifications import NotificationResultResponse


# =============================================================================
# TASK SCHEMAS
# =============================================================================


class TaskBase(JobDeskBaseModel):
    """Base task fields."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date | None = None
    assignee_ids: list[UUID] = Field(default_factory=list)
    watcher_ids: list[UUID] = Field(default_factory=list)
    wiki_article_id: UUID | None = None


class TaskCreate(TaskBase):
    """Create a task. Status always starts as Pending."""
    pass


class TaskUpdate(TaskBase):
    """Full edit from the task sheet."""

    status: TaskStatus


class TaskStatusUpdate(JobDeskBaseModel):
    status: TaskStatus


class TaskRevisionRequest(JobDeskBaseModel):
    feedback: str = Field(..., max_length=5000)


class TaskResponse(TaskBase, TimestampMixin):
    """Task with resolved assignees and watchers."""

    id: UUID
    display_id: str
    status: TaskStatus
    assigner_id: UUID | None = None
    revision_notes: str | None = None


class TaskMutationResponse(JobDeskBaseModel):
    """A task write plus the outcome of its follow-up notification."""

    task: TaskResponse
    notification: NotificationResultResponse | None = None
    notification_error: str | None = None


class TaskStatusResponse(JobDeskBaseModel):
    id: UUID
    requested_status: TaskStatus
    status: TaskStatus


# =============================================================================
# TEAM SCHEMAS
# =============================================================================


class TeamCreate(JobDeskBaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    department: str | None = None
    lead_id: UUID | None = None


class TeamMembersUpdate(JobDeskBaseModel):
    profile_ids: list[UUID] = Field(default_factory=list)


class TeamResponse(JobDeskBaseModel):
    id: UUID
    name: str
    department: str | None = None
    lead_id: UUID | None = None
    member_ids: list[UUID] = Field(default_factory=list)
