from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from credtrust.models.team import Team, TeamMembership
from credtrust.repos.memory import InMemoryTable


class TeamRepo(Protocol):
    async def get(self, team_id: int) -> Team | None: ...
    async def add(self, team: Team) -> Team: ...
    async def set_did(self, team_id: int, did: str) -> None: ...
    async def list_created_by(self, user_id: int) -> list[Team]: ...
    async def set_creator(self, team_id: int, user_id: int) -> None: ...
    async def delete_many(self, team_ids: list[int]) -> int: ...


class TeamMembershipRepo(Protocol):
    async def get(self, team_id: int, user_id: int) -> TeamMembership | None: ...
    async def add(self, membership: TeamMembership) -> TeamMembership: ...
    async def remove(self, team_id: int, user_id: int) -> bool: ...
    async def list_by_team(self, team_id: int) -> list[TeamMembership]: ...
    async def list_by_user(self, user_id: int) -> list[TeamMembership]: ...
    async def delete_by_user(self, user_id: int) -> int: ...


class InMemoryTeamRepo(InMemoryTable[Team]):
    async def get(self, team_id: int) -> Team | None:
        return self._rows.get(team_id)

    async def add(self, team: Team) -> Team:
        return self._insert(team)

    async def set_did(self, team_id: int, did: str) -> None:
        team = self._rows.get(team_id)
        if team is None:
            raise KeyError("team not found")
        self._rows[team_id] = replace(team, did=did)

    async def list_created_by(self, user_id: int) -> list[Team]:
        return sorted(
            (t for t in self._rows.values() if t.creator_user_id == user_id),
            key=lambda t: t.id,
        )

    async def set_creator(self, team_id: int, user_id: int) -> None:
        team = self._rows.get(team_id)
        if team is None:
            raise KeyError("team not found")
        self._rows[team_id] = replace(team, creator_user_id=user_id)

    async def delete_many(self, team_ids: list[int]) -> int:
        return sum(self._rows.pop(tid, None) is not None for tid in team_ids)


class InMemoryTeamMembershipRepo(InMemoryTable[TeamMembership]):
    async def get(self, team_id: int, user_id: int) -> TeamMembership | None:
        return next(
            (
                m
                for m in self._rows.values()
                if m.team_id == team_id and m.user_id == user_id
            ),
            None,
        )

    async def add(self, membership: TeamMembership) -> TeamMembership:
        if await self.get(membership.team_id, membership.user_id) is not None:
            raise ValueError("membership already exists")
        return self._insert(membership)

    async def remove(self, team_id: int, user_id: int) -> bool:
        existing = await self.get(team_id, user_id)
        if existing is None:
            return False
        del self._rows[existing.id]
        return True

    async def list_by_team(self, team_id: int) -> list[TeamMembership]:
        return _ordered(m for m in self._rows.values() if m.team_id == team_id)

    async def list_by_user(self, user_id: int) -> list[TeamMembership]:
        return _ordered(m for m in self._rows.values() if m.user_id == user_id)

    async def delete_by_user(self, user_id: int) -> int:
        doomed = [m.id for m in self._rows.values() if m.user_id == user_id]
        for mid in doomed:
            del self._rows[mid]
        return len(doomed)


def _ordered(memberships) -> list[TeamMembership]:
    # Earliest membership first; the first one is the user's "current" team.
    return sorted(memberships, key=lambda m: (m.joined_at, m.id))
