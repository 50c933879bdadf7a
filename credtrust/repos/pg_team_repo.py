"""PostgreSQL implementations of TeamRepo and TeamMembershipRepo."""

from __future__ import annotations

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from credtrust.db.tables import TeamMemberRow, TeamRow
from credtrust.models.team import Team, TeamMembership


class PgTeamRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, team_id: int) -> Team | None:
        row = await self._session.get(TeamRow, team_id)
        return None if row is None else _row_to_team(row)

    async def add(self, team: Team) -> Team:
        row = TeamRow(name=team.name, creator_user_id=team.creator_user_id, did=team.did)
        self._session.add(row)
        await self._session.flush()
        return _row_to_team(row)

    async def set_did(self, team_id: int, did: str) -> None:
        await self._session.execute(
            update(TeamRow).where(TeamRow.id == team_id).values(did=did)
        )

    async def list_created_by(self, user_id: int) -> list[Team]:
        stmt = (
            select(TeamRow)
            .where(TeamRow.creator_user_id == user_id)
            .order_by(TeamRow.id)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_team(r) for r in rows]

    async def set_creator(self, team_id: int, user_id: int) -> None:
        await self._session.execute(
            update(TeamRow).where(TeamRow.id == team_id).values(creator_user_id=user_id)
        )

    async def delete_many(self, team_ids: list[int]) -> int:
        if not team_ids:
            return 0
        result = await self._session.execute(
            delete(TeamRow).where(TeamRow.id.in_(team_ids))
        )
        return result.rowcount


class PgTeamMembershipRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, team_id: int, user_id: int) -> TeamMembership | None:
        stmt = select(TeamMemberRow).where(
            TeamMemberRow.team_id == team_id, TeamMemberRow.user_id == user_id
        )
        row = (await self._session.execute(stmt)).scalars().first()
        return None if row is None else _row_to_membership(row)

    async def add(self, membership: TeamMembership) -> TeamMembership:
        row = TeamMemberRow(
            team_id=membership.team_id,
            user_id=membership.user_id,
            role=membership.role,
            joined_at=membership.joined_at,
        )
        self._session.add(row)
        await self._session.flush()
        return _row_to_membership(row)

    async def remove(self, team_id: int, user_id: int) -> bool:
        result = await self._session.execute(
            delete(TeamMemberRow).where(
                TeamMemberRow.team_id == team_id, TeamMemberRow.user_id == user_id
            )
        )
        return result.rowcount > 0

    async def list_by_team(self, team_id: int) -> list[TeamMembership]:
        return await self._list(TeamMemberRow.team_id == team_id)

    async def list_by_user(self, user_id: int) -> list[TeamMembership]:
        return await self._list(TeamMemberRow.user_id == user_id)

    async def delete_by_user(self, user_id: int) -> int:
        result = await self._session.execute(
            delete(TeamMemberRow).where(TeamMemberRow.user_id == user_id)
        )
        return result.rowcount

    async def _list(self, condition) -> list[TeamMembership]:
        stmt = (
            select(TeamMemberRow)
            .where(condition)
            .order_by(TeamMemberRow.joined_at, TeamMemberRow.id)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_membership(r) for r in rows]


def _row_to_team(row: TeamRow) -> Team:
    return Team(
        id=row.id, name=row.name, creator_user_id=row.creator_user_id, did=row.did
    )


def _row_to_membership(row: TeamMemberRow) -> TeamMembership:
    return TeamMembership(
        id=row.id,
        team_id=row.team_id,
        user_id=row.user_id,
        role=row.role,
        joined_at=row.joined_at,
    )
