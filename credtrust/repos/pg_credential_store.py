"""PostgreSQL implementation of CredentialStore."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from credtrust.db.tables import CredentialRow
from credtrust.models.credential import (
    Credential,
    CredentialCategory,
    CredentialPage,
    CredentialQuery,
    CredentialStatus,
    StatusCounts,
)
from credtrust.repos.credential_store import UNSET, _Unset

_SORT_COLUMNS = {
    "title": CredentialRow.title,
    "category": CredentialRow.category,
    "status": CredentialRow.status,
    "created_at": CredentialRow.created_at,
}


def _contains_pattern(text: str) -> str:
    """LIKE pattern matching `text` literally anywhere in the column."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class PgCredentialStore:
    """Satisfies the CredentialStore Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, credential: Credential) -> Credential:
        row = CredentialRow(
            candidate_id=credential.candidate_id,
            issuer_id=credential.issuer_id,
            category=credential.category.value,
            title=credential.title,
            sub_type=credential.sub_type,
            file_url=credential.file_url,
            status=credential.status.value,
            verified=credential.verified,
            vc_payload=credential.vc_payload,
            verified_at=credential.verified_at,
            created_at=credential.created_at,
        )
        self._session.add(row)
        await self._session.flush()
        return _row_to_credential(row)

    async def get(self, credential_id: int) -> Credential | None:
        stmt = select(CredentialRow).where(CredentialRow.id == credential_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_credential(row)

    async def get_for_update(self, credential_id: int) -> Credential | None:
        # Row lock held until the surrounding unit commits or rolls back.
        stmt = (
            select(CredentialRow)
            .where(CredentialRow.id == credential_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_credential(row)

    async def list_by_candidate(
        self, candidate_id: int, query: CredentialQuery
    ) -> CredentialPage:
        return await self._page(CredentialRow.candidate_id == candidate_id, query)

    async def list_by_issuer(
        self, issuer_id: int, query: CredentialQuery
    ) -> CredentialPage:
        return await self._page(CredentialRow.issuer_id == issuer_id, query)

    async def list_ids_by_issuer(self, issuer_id: int) -> list[int]:
        stmt = (
            select(CredentialRow.id)
            .where(CredentialRow.issuer_id == issuer_id)
            .order_by(CredentialRow.id)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def update_status(
        self,
        credential_id: int,
        status: CredentialStatus,
        *,
        verified_at: datetime | None,
        vc_payload: dict[str, Any] | None | _Unset = UNSET,
    ) -> Credential:
        values: dict[str, Any] = {
            "status": status.value,
            "verified": status == CredentialStatus.VERIFIED,
            "verified_at": verified_at,
        }
        if not isinstance(vc_payload, _Unset):
            values["vc_payload"] = vc_payload
        result = await self._session.execute(
            update(CredentialRow)
            .where(CredentialRow.id == credential_id)
            .values(**values)
        )
        if result.rowcount == 0:
            raise KeyError("credential not found")
        updated = await self.get_for_update(credential_id)
        assert updated is not None
        return updated

    async def detach_issuer(self, issuer_id: int) -> int:
        result = await self._session.execute(
            update(CredentialRow)
            .where(CredentialRow.issuer_id == issuer_id)
            .values(
                issuer_id=None,
                status=CredentialStatus.UNVERIFIED.value,
                verified=False,
                verified_at=None,
            )
        )
        return result.rowcount

    async def delete_by_candidate(self, candidate_id: int) -> int:
        result = await self._session.execute(
            delete(CredentialRow)
            .where(CredentialRow.candidate_id == candidate_id)
        )
        return result.rowcount

    async def _page(self, scope, query: CredentialQuery) -> CredentialPage:
        counts_stmt = (
            select(CredentialRow.status, func.count())
            .where(scope)
            .group_by(CredentialRow.status)
        )
        counts = dict((await self._session.execute(counts_stmt)).all())

        stmt = select(CredentialRow).where(scope)
        if query.search:
            stmt = stmt.where(
                CredentialRow.title.ilike(_contains_pattern(query.search), escape="\\")
            )
        if query.status is not None:
            stmt = stmt.where(CredentialRow.status == query.status.value)

        column = _SORT_COLUMNS[query.sort]
        if query.order == "desc":
            stmt = stmt.order_by(column.desc(), CredentialRow.id.desc())
        else:
            stmt = stmt.order_by(column.asc(), CredentialRow.id.asc())
        stmt = stmt.offset(query.offset).limit(query.page_size + 1)

        rows = (await self._session.execute(stmt)).scalars().all()
        return CredentialPage(
            rows=[_row_to_credential(r) for r in rows[: query.page_size]],
            has_next=len(rows) > query.page_size,
            status_counts=StatusCounts(
                verified=counts.get(CredentialStatus.VERIFIED.value, 0),
                pending=counts.get(CredentialStatus.PENDING.value, 0),
                rejected=counts.get(CredentialStatus.REJECTED.value, 0),
                unverified=counts.get(CredentialStatus.UNVERIFIED.value, 0),
            ),
        )


def _row_to_credential(row: CredentialRow) -> Credential:
    return Credential(
        id=row.id,
        candidate_id=row.candidate_id,
        category=CredentialCategory(row.category),
        title=row.title,
        sub_type=row.sub_type,
        status=CredentialStatus(row.status),
        verified=row.verified,
        issuer_id=row.issuer_id,
        file_url=row.file_url,
        vc_payload=row.vc_payload,
        verified_at=row.verified_at,
        created_at=row.created_at,
    )
