"""PostgreSQL implementation of IssuerRepo."""

from __future__ import annotations

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from credtrust.db.tables import IssuerRow
from credtrust.models.issuer import Issuer, IssuerCategory, IssuerIndustry, IssuerStatus


class PgIssuerRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, issuer_id: int) -> Issuer | None:
        row = await self._session.get(IssuerRow, issuer_id)
        return None if row is None else _row_to_issuer(row)

    async def get_by_owner(self, owner_user_id: int) -> Issuer | None:
        stmt = select(IssuerRow).where(IssuerRow.owner_user_id == owner_user_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_issuer(row)

    async def add(self, issuer: Issuer) -> Issuer:
        row = IssuerRow(**_issuer_values(issuer), created_at=issuer.created_at)
        self._session.add(row)
        await self._session.flush()
        return _row_to_issuer(row)

    async def update(self, issuer: Issuer) -> Issuer:
        result = await self._session.execute(
            update(IssuerRow)
            .where(IssuerRow.id == issuer.id)
            .values(**_issuer_values(issuer))
        )
        if result.rowcount == 0:
            raise KeyError("issuer not found")
        return issuer

    async def delete(self, issuer_id: int) -> bool:
        result = await self._session.execute(
            delete(IssuerRow).where(IssuerRow.id == issuer_id)
        )
        return result.rowcount > 0


def _issuer_values(issuer: Issuer) -> dict:
    return {
        "owner_user_id": issuer.owner_user_id,
        "name": issuer.name,
        "domain": issuer.domain,
        "logo_url": issuer.logo_url,
        "did": issuer.did,
        "status": issuer.status.value,
        "category": issuer.category.value,
        "industry": issuer.industry.value,
        "rejection_reason": issuer.rejection_reason,
    }


def _row_to_issuer(row: IssuerRow) -> Issuer:
    return Issuer(
        id=row.id,
        owner_user_id=row.owner_user_id,
        name=row.name,
        domain=row.domain,
        status=IssuerStatus(row.status),
        did=row.did,
        logo_url=row.logo_url,
        category=IssuerCategory(row.category),
        industry=IssuerIndustry(row.industry),
        rejection_reason=row.rejection_reason,
        created_at=row.created_at,
    )
