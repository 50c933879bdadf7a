from __future__ import annotations

from typing import Protocol

from credtrust.models.activity import ActivityLog
from credtrust.repos.memory import InMemoryTable


class ActivityLogRepo(Protocol):
    async def add(self, entry: ActivityLog) -> ActivityLog: ...
    async def list_by_team(self, team_id: int) -> list[ActivityLog]: ...
    async def delete_by_user(self, user_id: int) -> int: ...
    async def delete_by_teams(self, team_ids: list[int]) -> int: ...


class InMemoryActivityLogRepo(InMemoryTable[ActivityLog]):
    async def add(self, entry: ActivityLog) -> ActivityLog:
        return self._insert(entry)

    async def list_by_team(self, team_id: int) -> list[ActivityLog]:
        return sorted(
            (e for e in self._rows.values() if e.team_id == team_id),
            key=lambda e: e.timestamp,
            reverse=True,
        )

    async def delete_by_user(self, user_id: int) -> int:
        doomed = [e.id for e in self._rows.values() if e.user_id == user_id]
        for eid in doomed:
            del self._rows[eid]
        return len(doomed)

    async def delete_by_teams(self, team_ids: list[int]) -> int:
        wanted = set(team_ids)
        doomed = [e.id for e in self._rows.values() if e.team_id in wanted]
        for eid in doomed:
            del self._rows[eid]
        return len(doomed)
