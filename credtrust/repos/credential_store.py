"""CredentialStore: persistence for the Credential entity.

No business rules live here; LifecycleCoordinator decides which transition
is allowed.  The store's one rule is representational: `status` and
`verified` are always written together by `update_status`, which derives
`verified` from `status`, so no caller can set them independently.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Final, Protocol

from credtrust.models.credential import (
    Credential,
    CredentialPage,
    CredentialQuery,
    CredentialStatus,
    StatusCounts,
)
from credtrust.repos.memory import InMemoryTable


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# Sentinel for "leave vc_payload as it is" (None means "clear it").
UNSET: Final = _Unset()


class CredentialStore(Protocol):
    async def add(self, credential: Credential) -> Credential: ...
    async def get(self, credential_id: int) -> Credential | None: ...
    async def get_for_update(self, credential_id: int) -> Credential | None: ...
    async def list_by_candidate(
        self, candidate_id: int, query: CredentialQuery
    ) -> CredentialPage: ...
    async def list_by_issuer(
        self, issuer_id: int, query: CredentialQuery
    ) -> CredentialPage: ...
    async def list_ids_by_issuer(self, issuer_id: int) -> list[int]: ...
    async def update_status(
        self,
        credential_id: int,
        status: CredentialStatus,
        *,
        verified_at: datetime | None,
        vc_payload: dict[str, Any] | None | _Unset = UNSET,
    ) -> Credential: ...
    async def detach_issuer(self, issuer_id: int) -> int: ...
    async def delete_by_candidate(self, candidate_id: int) -> int: ...


def count_statuses(credentials: list[Credential]) -> StatusCounts:
    counts = {s: 0 for s in CredentialStatus}
    for c in credentials:
        counts[c.status] += 1
    return StatusCounts(
        verified=counts[CredentialStatus.VERIFIED],
        pending=counts[CredentialStatus.PENDING],
        rejected=counts[CredentialStatus.REJECTED],
        unverified=counts[CredentialStatus.UNVERIFIED],
    )


class InMemoryCredentialStore(InMemoryTable[Credential]):
    async def add(self, credential: Credential) -> Credential:
        return self._insert(credential)

    async def get(self, credential_id: int) -> Credential | None:
        return self._rows.get(credential_id)

    async def get_for_update(self, credential_id: int) -> Credential | None:
        # The unit of work already serializes in-memory access.
        return self._rows.get(credential_id)

    async def list_by_candidate(
        self, candidate_id: int, query: CredentialQuery
    ) -> CredentialPage:
        return self._page(
            [c for c in self._rows.values() if c.candidate_id == candidate_id], query
        )

    async def list_by_issuer(
        self, issuer_id: int, query: CredentialQuery
    ) -> CredentialPage:
        return self._page(
            [c for c in self._rows.values() if c.issuer_id == issuer_id], query
        )

    async def list_ids_by_issuer(self, issuer_id: int) -> list[int]:
        return sorted(c.id for c in self._rows.values() if c.issuer_id == issuer_id)

    async def update_status(
        self,
        credential_id: int,
        status: CredentialStatus,
        *,
        verified_at: datetime | None,
        vc_payload: dict[str, Any] | None | _Unset = UNSET,
    ) -> Credential:
        current = self._rows.get(credential_id)
        if current is None:
            raise KeyError("credential not found")
        changes: dict[str, Any] = {
            "status": status,
            "verified": status == CredentialStatus.VERIFIED,
            "verified_at": verified_at,
        }
        if not isinstance(vc_payload, _Unset):
            changes["vc_payload"] = vc_payload
        updated = replace(current, **changes)
        self._rows[credential_id] = updated
        return updated

    async def detach_issuer(self, issuer_id: int) -> int:
        linked = [c for c in self._rows.values() if c.issuer_id == issuer_id]
        for c in linked:
            self._rows[c.id] = replace(
                c,
                issuer_id=None,
                status=CredentialStatus.UNVERIFIED,
                verified=False,
                verified_at=None,
            )
        return len(linked)

    async def delete_by_candidate(self, candidate_id: int) -> int:
        doomed = [c.id for c in self._rows.values() if c.candidate_id == candidate_id]
        for cid in doomed:
            del self._rows[cid]
        return len(doomed)

    def _page(self, scoped: list[Credential], query: CredentialQuery) -> CredentialPage:
        counts = count_statuses(scoped)

        rows = scoped
        if query.search:
            needle = query.search.lower()
            rows = [c for c in rows if needle in c.title.lower()]
        if query.status is not None:
            rows = [c for c in rows if c.status == query.status]

        rows = sorted(
            rows,
            key=lambda c: (getattr(c, query.sort), c.id),
            reverse=query.order == "desc",
        )
        window = rows[query.offset : query.offset + query.page_size + 1]
        return CredentialPage(
            rows=window[: query.page_size],
            has_next=len(window) > query.page_size,
            status_counts=counts,
        )
