"""Personnel Router: the staff directory.

Creating a profile or reissuing its credentials sends the WhatsApp
onboarding message with the new temporary password.
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from ..core.dependencies import AdminDep, CurrentUserDep, SessionDep, WhatsAppClientDep
from ..schemas import (
    ProfileCreate,
    ProfileCreatedResponse,
    ProfileResponse,
    ProfileUpdateRequest,
)
from ..services.personnel import (
    DuplicateEmailError,
    IssuedCredentials,
    PersonnelService,
    ProfileInput,
    ProfileNotFoundError,
    ProfileUpdate,
)
from .notifications import dispatch_after_commit

router = APIRouter(prefix="/personnel", tags=["personnel"])


def get_personnel_service(session: SessionDep) -> PersonnelService:
    return PersonnelService(session)


async def _onboard(
    issued: IssuedCredentials,
    session: SessionDep,
    client: WhatsAppClientDep,
) -> ProfileCreatedResponse:
    # Serialized up front: a rollback while notifying expires loaded rows
    profile = ProfileResponse.model_validate(issued.profile)
    notification, error = await dispatch_after_commit(
        session, client, lambda d: d.notify_onboarding(profile.id)
    )
    return ProfileCreatedResponse(
        profile=profile,
        temporary_password=issued.temporary_password,
        expires_at=issued.expires_at,
        notification=notification,
        notification_error=error,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.get("", response_model=list[ProfileResponse])
async def list_personnel(
    current_user: CurrentUserDep,
    session: SessionDep,
):
    """List every profile (used for assignee pickers)."""
    profiles = await get_personnel_service(session).list_profiles()
    return [ProfileResponse.model_validate(p) for p in profiles]


@router.post("", response_model=ProfileCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_personnel(
    request: ProfileCreate,
    current_user: AdminDep,
    session: SessionDep,
    client: WhatsAppClientDep,
):
    """Create a profile with a temporary password and send onboarding."""
    service = get_personnel_service(session)
    try:
        issued = await service.create_profile(
            ProfileInput(
                email=request.email,
                full_name=request.full_name,
                phone=request.phone,
                role=request.role,
                department=request.department,
            )
        )
    except DuplicateEmailError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return await _onboard(issued, session, client)


@router.put("/{profile_id}", response_model=ProfileResponse)
async def update_personnel(
    profile_id: UUID,
    request: ProfileUpdateRequest,
    current_user: AdminDep,
    session: SessionDep,
):
    """Edit a profile."""
    try:
        profile = await get_personnel_service(session).update_profile(
            profile_id,
            ProfileUpdate(
                full_name=request.full_name,
                phone=request.phone,
                role=request.role,
                department=request.department,
            ),
        )
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    await session.commit()
    return ProfileResponse.model_validate(profile)


@router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_personnel(
    profile_id: UUID,
    current_user: AdminDep,
    session: SessionDep,
):
    """Remove a profile and its assignments, watches and memberships."""
    if profile_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own profile",
        )
    try:
        await get_personnel_service(session).delete_profile(profile_id)
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    await session.commit()


@router.post("/{profile_id}/resend-credentials", response_model=ProfileCreatedResponse)
async def resend_credentials(
    profile_id: UUID,
    current_user: AdminDep,
    session: SessionDep,
    client: WhatsAppClientDep,
):
    """New temporary password (12 h) and a fresh onboarding message."""
    try:
        issued = await get_personnel_service(session).resend_credentials(profile_id)
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return await _onboard(issued, session, client)
