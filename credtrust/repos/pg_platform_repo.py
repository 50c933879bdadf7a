"""PostgreSQL implementation of PlatformSettingRepo."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from credtrust.db.tables import PlatformSettingRow


class PgPlatformSettingRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, key: str) -> str | None:
        row = await self._session.get(PlatformSettingRow, key)
        return None if row is None else row.value

    async def set(self, key: str, value: str) -> None:
        row = await self._session.get(PlatformSettingRow, key)
        if row is None:
            self._session.add(PlatformSettingRow(key=key, value=value))
        else:
            row.value = value
        await self._session.flush()
