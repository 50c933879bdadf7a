from __future__ import annotations

from typing import Protocol

from credtrust.models.issuer import Issuer
from credtrust.repos.memory import InMemoryTable


class IssuerRepo(Protocol):
    async def get(self, issuer_id: int) -> Issuer | None: ...
    async def get_by_owner(self, owner_user_id: int) -> Issuer | None: ...
    async def add(self, issuer: Issuer) -> Issuer: ...
    async def update(self, issuer: Issuer) -> Issuer: ...
    async def delete(self, issuer_id: int) -> bool: ...


class InMemoryIssuerRepo(InMemoryTable[Issuer]):
    async def get(self, issuer_id: int) -> Issuer | None:
        return self._rows.get(issuer_id)

    async def get_by_owner(self, owner_user_id: int) -> Issuer | None:
        return next(
            (i for i in self._rows.values() if i.owner_user_id == owner_user_id),
            None,
        )

    async def add(self, issuer: Issuer) -> Issuer:
        if await self.get_by_owner(issuer.owner_user_id) is not None:
            raise ValueError("owner already has an issuer")
        return self._insert(issuer)

    async def update(self, issuer: Issuer) -> Issuer:
        if issuer.id not in self._rows:
            raise KeyError("issuer not found")
        self._rows[issuer.id] = issuer
        return issuer

    async def delete(self, issuer_id: int) -> bool:
        return self._rows.pop(issuer_id, None) is not None
