"""PostgreSQL implementation of ActivityLogRepo."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from credtrust.db.tables import ActivityLogRow
from credtrust.models.activity import ActivityLog, ActivityType


class PgActivityLogRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, entry: ActivityLog) -> ActivityLog:
        row = ActivityLogRow(
            team_id=entry.team_id,
            user_id=entry.user_id,
            action=entry.action.value,
            timestamp=entry.timestamp,
        )
        self._session.add(row)
        await self._session.flush()
        return _row_to_entry(row)

    async def list_by_team(self, team_id: int) -> list[ActivityLog]:
        stmt = (
            select(ActivityLogRow)
            .where(ActivityLogRow.team_id == team_id)
            .order_by(ActivityLogRow.timestamp.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_entry(r) for r in rows]

    async def delete_by_user(self, user_id: int) -> int:
        result = await self._session.execute(
            delete(ActivityLogRow)
            .where(ActivityLogRow.user_id == user_id)
        )
        return result.rowcount

    async def delete_by_teams(self, team_ids: list[int]) -> int:
        if not team_ids:
            return 0
        result = await self._session.execute(
            delete(ActivityLogRow)
            .where(ActivityLogRow.team_id.in_(team_ids))
        )
        return result.rowcount


def _row_to_entry(row: ActivityLogRow) -> ActivityLog:
    return ActivityLog(
        id=row.id,
        team_id=row.team_id,
        user_id=row.user_id,
        action=ActivityType(row.action),
        timestamp=row.timestamp,
    )
