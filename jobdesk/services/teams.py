"""Team Service: named groups of profiles used to bulk-select assignees."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Profile, Team, TeamMember
from .assignments import merge_recipients

logger = logging.getLogger(__name__)


class TeamError(Exception):
    """Base exception for team operations."""
    pass


class TeamNotFoundError(TeamError):
    pass


class InvalidTeamError(TeamError):
    pass


@dataclass
class TeamInput:
    name: str
    department: str | None = None
    lead_id: UUID | None = None


@dataclass
class TeamWithMembers:
    team: Team
    member_ids: list[UUID]


class TeamService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_team(self, team_id: UUID) -> Team:
        team = await self.session.get(Team, team_id)
        if team is None:
            raise TeamNotFoundError(f"Team {team_id} not found")
        return team

    async def create_team(self, data: TeamInput) -> Team:
        name = data.name.strip()
        if not name:
            raise InvalidTeamError("Team name is required")
        if data.lead_id is not None and await self.session.get(Profile, data.lead_id) is None:
            raise InvalidTeamError(f"Unknown team lead {data.lead_id}")

        team = Team(name=name, department=data.department, lead_id=data.lead_id)
        self.session.add(team)
        await self.session.flush()
        logger.info(f"Created team {team.id} ({name})")
        return team

    async def list_teams(self) -> list[TeamWithMembers]:
        teams = (await self.session.execute(select(Team).order_by(Team.name))).scalars().all()
        rows = await self.session.execute(select(TeamMember.team_id, TeamMember.profile_id))

        members: dict[UUID, list[UUID]] = {}
        for team_id, profile_id in rows.all():
            members.setdefault(team_id, []).append(profile_id)
        return [TeamWithMembers(team, members.get(team.id, [])) for team in teams]

    async def member_ids(self, team_id: UUID) -> list[UUID]:
        await self.get_team(team_id)
        result = await self.session.execute(
            select(TeamMember.profile_id).where(TeamMember.team_id == team_id)
        )
        return list(result.scalars().all())

    async def set_members(self, team_id: UUID, profile_ids: list[UUID]) -> list[UUID]:
        """Replace the member list."""
        await self.get_team(team_id)
        ids = merge_recipients(profile_ids)
        if ids:
            found = await self.session.execute(select(Profile.id).where(Profile.id.in_(ids)))
            missing = set(ids) - set(found.scalars().all())
            if missing:
                raise InvalidTeamError(
                    f"Unknown profile id(s): {', '.join(sorted(str(m) for m in missing))}"
                )

        await self.session.execute(delete(TeamMember).where(TeamMember.team_id == team_id))
        for profile_id in ids:
            self.session.add(TeamMember(team_id=team_id, profile_id=profile_id))
        await self.session.flush()
        return ids

    async def delete_team(self, team_id: UUID) -> None:
        team = await self.get_team(team_id)
        await self.session.execute(delete(TeamMember).where(TeamMember.team_id == team_id))
        await self.session.delete(team)
        await self.session.flush()
        logger.info(f"Deleted team {team_id}")
