"""
Personnel Service: directory profiles and their login credentials.

New personnel receive a short-lived temporary password that is delivered
in the WhatsApp onboarding message; the first sign-in forces a change.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.security import (
    generate_temporary_password,
    hash_password,
    temp_password_expiry,
    verify_password,
)
from ..models import (
    NotificationKind,
    NotificationLog,
    Profile,
    ProfileRole,
    Task,
    TaskAssignment,
    TaskWatcher,
    Team,
    TeamMember,
    WikiArticle,
)
from .notification_log import NotificationLogStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


# =============================================================================
# EXCEPTIONS
# =============================================================================


class PersonnelError(Exception):
    """Base exception for personnel operations."""
    pass


class ProfileNotFoundError(PersonnelError):
    """Profile does not exist."""
    pass


class DuplicateEmailError(PersonnelError):
    """Another profile already uses this email."""
    pass


class InvalidPasswordError(PersonnelError):
    """New password does not meet the minimum requirements."""
    pass


class AuthenticationError(PersonnelError):
    """Email or password is wrong."""
    pass


class TemporaryPasswordExpiredError(AuthenticationError):
    """The temporary password is past its validity window."""
    pass


# =============================================================================
# DATA TRANSFER OBJECTS
# =============================================================================


@dataclass
class ProfileInput:
    email: str
    full_name: str | None = None
    phone: str | None = None
    role: ProfileRole = ProfileRole.STAFF
    department: str | None = None


@dataclass
class ProfileUpdate:
    """Partial update; None leaves a field untouched."""
    full_name: str | None = None
    phone: str | None = None
    role: ProfileRole | None = None
    department: str | None = None


@dataclass
class IssuedCredentials:
    """A profile together with the plaintext temporary password it was given."""
    profile: Profile
    temporary_password: str
    expires_at: datetime


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def normalize_email(email: str) -> str:
    return email.strip().lower()


# =============================================================================
# PERSONNEL SERVICE
# =============================================================================


class PersonnelService:
    """Create, edit and authenticate profiles."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_profile(self, profile_id: UUID) -> Profile:
        profile = await self.session.get(Profile, profile_id)
        if profile is None:
            raise ProfileNotFoundError(f"Profile {profile_id} not found")
        return profile

    async def get_by_email(self, email: str) -> Profile | None:
        result = await self.session.execute(
            select(Profile).where(Profile.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def list_profiles(self) -> list[Profile]:
        result = await self.session.execute(
            select(Profile).order_by(Profile.full_name, Profile.email)
        )
        return list(result.scalars().all())

    async def create_profile(
        self,
        data: ProfileInput,
        now: datetime | None = None,
    ) -> IssuedCredentials:
        """Create a profile with a fresh temporary password (forced change)."""
        email = normalize_email(data.email)
        if await self.get_by_email(email) is not None:
            raise DuplicateEmailError(f"A profile with email {email} already exists")

        password = generate_temporary_password()
        expires_at = temp_password_expiry(now)
        profile = Profile(
            email=email,
            full_name=data.full_name,
            phone=data.phone,
            role=ProfileRole(data.role),
            department=data.department,
            password_hash=hash_password(password),
            temporary_password=password,
            temp_password_expires_at=expires_at,
            is_password_forced_change=True,
        )
        self.session.add(profile)
        await self.session.flush()

        logger.info(f"Created profile {profile.id} ({profile.role.value})")
        return IssuedCredentials(profile, password, expires_at)

    async def update_profile(self, profile_id: UUID, data: ProfileUpdate) -> Profile:
        profile = await self.get_profile(profile_id)
        if data.full_name is not None:
            profile.full_name = data.full_name
        if data.phone is not None:
            profile.phone = data.phone or None
        if data.role is not None:
            profile.role = ProfileRole(data.role)
        if data.department is not None:
            profile.department = data.department or None
        await self.session.flush()
        return profile

    async def delete_profile(self, profile_id: UUID) -> None:
        """Remove a profile and everything that references it."""
        profile = await self.get_profile(profile_id)

        await self.session.execute(
            delete(TaskAssignment).where(TaskAssignment.profile_id == profile_id)
        )
        await self.session.execute(
            delete(TaskWatcher).where(TaskWatcher.profile_id == profile_id)
        )
        await self.session.execute(
            delete(TeamMember).where(TeamMember.profile_id == profile_id)
        )
        await self.session.execute(
            delete(NotificationLog).where(NotificationLog.profile_id == profile_id)
        )
        await self.session.execute(
            update(Task).where(Task.assignee_id == profile_id).values(assignee_id=None)
        )
        await self.session.execute(
            update(Task).where(Task.assigner_id == profile_id).values(assigner_id=None)
        )
        await self.session.execute(
            update(Team).where(Team.lead_id == profile_id).values(lead_id=None)
        )
        await self.session.execute(
            update(WikiArticle)
            .where(WikiArticle.author_id == profile_id)
            .values(author_id=None)
        )

        await self.session.delete(profile)
        await self.session.flush()
        logger.info(f"Deleted profile {profile_id}")

    # =========================================================================
    # CREDENTIALS
    # =========================================================================

    async def resend_credentials(
        self,
        profile_id: UUID,
        now: datetime | None = None,
    ) -> IssuedCredentials:
        """Issue a new temporary password and allow onboarding to go out again."""
        profile = await self.get_profile(profile_id)

        password = generate_temporary_password()
        expires_at = temp_password_expiry(now)
        profile.password_hash = hash_password(password)
        profile.temporary_password = password
        profile.temp_password_expires_at = expires_at
        profile.is_password_forced_change = True

        await NotificationLogStore(self.session).clear(NotificationKind.ONBOARDING, profile_id)
        await self.session.flush()

        logger.info(f"Reissued temporary credentials for profile {profile_id}")
        return IssuedCredentials(profile, password, expires_at)

    async def change_password(self, profile: Profile, new_password: str) -> Profile:
        """Set a permanent password and drop the temporary one."""
        password = new_password.strip()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidPasswordError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        profile.password_hash = hash_password(password)
        profile.is_password_forced_change = False
        profile.temporary_password = None
        profile.temp_password_expires_at = None
        await self.session.flush()
        return profile

    async def authenticate(
        self,
        email: str,
        password: str,
        now: datetime | None = None,
    ) -> Profile:
        """Verify email and password; expired temporary passwords are refused."""
        profile = await self.get_by_email(email)
        if profile is None or not profile.password_hash:
            raise AuthenticationError("Invalid email or password")
        if not verify_password(password, profile.password_hash):
            raise AuthenticationError("Invalid email or password")

        if profile.is_password_forced_change and profile.temp_password_expires_at:
            now = now or datetime.now(timezone.utc)
            if _as_utc(profile.temp_password_expires_at) < now:
                raise TemporaryPasswordExpiredError(
                    "Temporary password has expired. Ask an administrator to resend credentials."
                )
        return profile

    async def get_or_create_profile(self, email: str, full_name: str | None = None) -> Profile:
        """Load a profile by email, provisioning a staff profile when absent."""
        profile = await self.get_by_email(email)
        if profile is not None:
            return profile

        profile = Profile(
            email=normalize_email(email),
            full_name=full_name,
            role=ProfileRole.STAFF,
        )
        self.session.add(profile)
        await self.session.flush()
        logger.info(f"Auto-provisioned staff profile {profile.id}")
        return profile
