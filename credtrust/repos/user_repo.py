from __future__ import annotations

from typing import Protocol

from credtrust.models.user import User
from credtrust.repos.memory import InMemoryTable


class UserRepo(Protocol):
    async def get(self, user_id: int) -> User | None: ...
    async def get_by_email(self, email: str) -> User | None: ...
    async def add(self, user: User) -> User: ...
    async def delete(self, user_id: int) -> bool: ...


class InMemoryUserRepo(InMemoryTable[User]):
    async def get(self, user_id: int) -> User | None:
        return self._rows.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        email = email.strip().lower()
        return next((u for u in self._rows.values() if u.email == email), None)

    async def add(self, user: User) -> User:
        if await self.get_by_email(user.email) is not None:
            raise ValueError("email already exists")
        return self._insert(user)

    async def delete(self, user_id: int) -> bool:
        return self._rows.pop(user_id, None) is not None
