"""Base schemas and common types for the JobDesk API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from ..models import ProfileRole


# =============================================================================
# BASE SCHEMAS
# =============================================================================


class JobDeskBaseModel(BaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,  # Enable ORM mode
        populate_by_name=True,
        use_enum_values=True,
    )


class TimestampMixin(BaseModel):
    """Mixin for created/updated timestamps."""

    created_at: datetime
    updated_at: datetime | None = None


# =============================================================================
# ERROR RESPONSES
# =============================================================================


class ErrorDetail(JobDeskBaseModel):
    """Detailed error information."""

    field: str | None = None
    message: str
    code: str


class ErrorResponse(JobDeskBaseModel):
    """Standard error response format."""

    error: str
    message: str
    details: list[ErrorDetail] = []
    request_id: str | None = None


# =============================================================================
# COMMON REFERENCE SCHEMAS
# =============================================================================


class ProfileRef(JobDeskBaseModel):
    """Minimal profile reference for embedding in responses."""

    id: UUID
    full_name: str | None = None
    email: str
    role: ProfileRole
