"""Authentication API routes for JobDesk.

Email/password login issuing JWT access tokens, a development-only sign-in
that provisions staff profiles on first use, and the forced password change
that follows a temporary password.
"""

from fastapi import APIRouter, HTTPException, status

from ..core.config import get_settings
from ..core.dependencies import CurrentUserDep, SessionDep
from ..core.security import create_access_token
from ..models import Profile
from ..schemas import (
    ChangePasswordRequest,
    DevLoginRequest,
    LoginRequest,
    ProfileResponse,
    TokenResponse,
)
from ..services.personnel import (
    AuthenticationError,
    InvalidPasswordError,
    PersonnelService,
    TemporaryPasswordExpiredError,
)

settings = get_settings()

router = APIRouter(prefix="/auth", tags=["authentication"])


def issue_token(profile: Profile) -> TokenResponse:
    token = create_access_token(profile_id=profile.id, role=profile.role.value)
    return TokenResponse(
        access_token=token,
        profile=ProfileResponse.model_validate(profile),
        must_change_password=profile.is_password_forced_change,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    session: SessionDep,
):
    """Login with email and password."""
    try:
        profile = await PersonnelService(session).authenticate(request.email, request.password)
    except TemporaryPasswordExpiredError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))

    return issue_token(profile)


@router.post("/dev-login", response_model=TokenResponse)
async def dev_login(
    request: DevLoginRequest,
    session: SessionDep,
):
    """
    Development login - bypasses the password check.

    Unknown emails get a staff profile. Disabled outside development.
    """
    if not settings.dev_login_enabled:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not found",
        )

    profile = await PersonnelService(session).get_or_create_profile(
        request.email, request.full_name
    )
    await session.commit()
    return issue_token(profile)


@router.post("/change-password", response_model=ProfileResponse)
async def change_password(
    request: ChangePasswordRequest,
    current_user: CurrentUserDep,
    session: SessionDep,
):
    """Set a permanent password and clear the forced-change flag."""
    try:
        profile = await PersonnelService(session).change_password(
            current_user.profile, request.new_password
        )
    except InvalidPasswordError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await session.commit()
    return ProfileResponse.model_validate(profile)


@router.get("/me", response_model=ProfileResponse)
async def get_me(current_user: CurrentUserDep):
    """Get the current user's profile."""
    return ProfileResponse.model_validate(current_user.profile)
