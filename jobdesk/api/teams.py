"""Team Router: groups used to bulk-select assignees."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from ..core.dependencies import AdminDep, CurrentUserDep, SessionDep
from ..schemas import TeamCreate, TeamMembersUpdate, TeamResponse
from ..services.teams import InvalidTeamError, TeamInput, TeamNotFoundError, TeamService

router = APIRouter(prefix="/teams", tags=["teams"])


@router.get("", response_model=list[TeamResponse])
async def list_teams(
    current_user: CurrentUserDep,
    session: SessionDep,
):
    teams = await TeamService(session).list_teams()
    return [
        TeamResponse(
            id=t.team.id,
            name=t.team.name,
            department=t.team.department,
            lead_id=t.team.lead_id,
            member_ids=t.member_ids,
        )
        for t in teams
    ]


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    request: TeamCreate,
    current_user: AdminDep,
    session: SessionDep,
):
    try:
        team = await TeamService(session).create_team(
            TeamInput(name=request.name, department=request.department, lead_id=request.lead_id)
        )
    except InvalidTeamError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await session.commit()
    return TeamResponse(
        id=team.id,
        name=team.name,
        department=team.department,
        lead_id=team.lead_id,
    )


@router.put("/{team_id}/members", response_model=TeamResponse)
async def set_team_members(
    team_id: UUID,
    request: TeamMembersUpdate,
    current_user: AdminDep,
    session: SessionDep,
):
    """Replace the team's member list."""
    service = TeamService(session)
    try:
        member_ids = await service.set_members(team_id, request.profile_ids)
        team = await service.get_team(team_id)
    except TeamNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidTeamError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await session.commit()
    return TeamResponse(
        id=team.id,
        name=team.name,
        department=team.department,
        lead_id=team.lead_id,
        member_ids=member_ids,
    )


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team(
    team_id: UUID,
    current_user: AdminDep,
    session: SessionDep,
):
    try:
        await TeamService(session).delete_team(team_id)
    except TeamNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    await session.commit()
