"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from credtrust.db.tables import UserRow
from credtrust.models.user import User


class PgUserRepo:
    """Satisfies the UserRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: int) -> User | None:
        row = await self._session.get(UserRow, user_id)
        return None if row is None else _row_to_user(row)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(UserRow).where(UserRow.email == email.strip().lower())
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_user(row)

    async def add(self, user: User) -> User:
        row = UserRow(email=user.email, name=user.name, role=user.role)
        self._session.add(row)
        await self._session.flush()
        return _row_to_user(row)

    async def delete(self, user_id: int) -> bool:
        result = await self._session.execute(delete(UserRow).where(UserRow.id == user_id))
        return result.rowcount > 0


def _row_to_user(row: UserRow) -> User:
    return User(id=row.id, email=row.email, name=row.name or "", role=row.role)
