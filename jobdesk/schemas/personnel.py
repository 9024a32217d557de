"""Pydantic schemas for personnel and authentication."""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field

from ..models import ProfileRole
from .base import JobDeskBaseModel, TimestampMixin
from .notifications import NotificationResultResponse


# =============================================================================
# PROFILE SCHEMAS
# =============================================================================


class ProfileBase(JobDeskBaseModel):
    """Base profile fields."""

    full_name: str | None = Field(default=None, max_length=255)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=50)
    role: ProfileRole = ProfileRole.STAFF
    department: str | None = Field(default=None, max_length=255)


class ProfileCreate(ProfileBase):
    """Admin creates a profile; a temporary password is generated."""
    pass


class ProfileUpdateRequest(JobDeskBaseModel):
    """Partial profile edit."""

    full_name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    role: ProfileRole | None = None
    department: str | None = Field(default=None, max_length=255)


class ProfileResponse(ProfileBase, TimestampMixin):
    """Profile as shown in the directory."""

    id: UUID
    email: str
    is_password_forced_change: bool = False
    temp_password_expires_at: datetime | None = None


class ProfileCreatedResponse(JobDeskBaseModel):
    """Result of creating a profile or reissuing its credentials."""

    profile: ProfileResponse
    temporary_password: str
    expires_at: datetime
    notification: NotificationResultResponse | None = None
    notification_error: str | None = None


# =============================================================================
# AUTH SCHEMAS
# =============================================================================


class LoginRequest(JobDeskBaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class DevLoginRequest(JobDeskBaseModel):
    """Development sign-in: provisions a staff profile when the email is new."""

    email: EmailStr
    full_name: str | None = None


class TokenResponse(JobDeskBaseModel):
    access_token: str
    token_type: str = "bearer"
    profile: ProfileResponse
    must_change_password: bool = False


class ChangePasswordRequest(JobDeskBaseModel):
    new_password: str = Field(..., min_length=1, max_length=128)
