"""FastAPI dependencies for authentication, authorization, and shared clients."""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Profile, ProfileRole
from ..services.status_gate import PRIVILEGED_ROLES
from ..services.whatsapp import WhatsAppClient
from .config import get_settings
from .database import get_session
from .security import decode_token

logger = logging.getLogger(__name__)
settings = get_settings()

# Security scheme
bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser:
    """Represents the authenticated profile."""

    def __init__(self, profile: Profile):
        self.profile = profile

    @property
    def id(self) -> UUID:
        return self.profile.id

    @property
    def role(self) -> ProfileRole:
        return self.profile.role

    @property
    def is_admin(self) -> bool:
        return self.profile.role == ProfileRole.ADMIN

    @property
    def is_privileged(self) -> bool:
        """Admins and chefs may confirm task completion."""
        return self.profile.role in PRIVILEGED_ROLES


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CurrentUser:
    """Dependency to get the current authenticated profile from a bearer JWT."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.type != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
        )

    try:
        profile_id = UUID(payload.sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
        )

    profile = await session.get(Profile, profile_id)
    if not profile:
        logger.warning(f"Token for unknown profile {profile_id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    return CurrentUser(profile)


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Require the admin role."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user


def require_privileged(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Require admin or chef."""
    if not current_user.is_privileged:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin or chef privileges required",
        )
    return current_user


async def get_whatsapp_client() -> AsyncGenerator[WhatsAppClient, None]:
    """Request-scoped gateway client."""
    async with WhatsAppClient() as client:
        yield client


# Type aliases for cleaner dependency injection
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
AdminDep = Annotated[CurrentUser, Depends(require_admin)]
PrivilegedDep = Annotated[CurrentUser, Depends(require_privileged)]
SessionDep = Annotated[AsyncSession, Depends(get_session)]
WhatsAppClientDep = Annotated[WhatsAppClient, Depends(get_whatsapp_client)]
