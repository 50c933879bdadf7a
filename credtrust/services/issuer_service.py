"""Issuer onboarding: registration, admin review, resubmission.

    create_issuer         any issuer-role user, once; starts PENDING
    update_issuer_status  admin review; activating an issuer without a DID
                          mints one first, and a failed mint changes nothing
    resubmit_issuer       owner edits a REJECTED issuer, back to PENDING
"""

from __future__ import annotations

import logging
from dataclasses import replace
from urllib.parse import urlparse

from credtrust.core.errors import (
    AuthorizationError,
    NotFoundError,
    PreconditionError,
    ValidationError,
    as_result,
)
from credtrust.models.issuer import Issuer, IssuerCategory, IssuerIndustry, IssuerStatus
from credtrust.models.principal import Principal
from credtrust.repos.unit_of_work import UnitOfWorkFactory
from credtrust.services.did_registry import report_unrecorded_did
from credtrust.services.issuance_gateway import IssuanceGateway

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 2000


def _validated_details(
    name: str,
    domain: str,
    logo_url: str | None,
    category: str,
    industry: str,
) -> dict:
    name = name.strip()
    if not 2 <= len(name) <= 200:
        raise ValidationError("name must be 2-200 characters", code="invalid_name")
    domain = domain.strip().lower()
    if not 3 <= len(domain) <= 255:
        raise ValidationError("domain must be 3-255 characters", code="invalid_domain")

    logo_url = (logo_url or "").strip() or None
    if logo_url is not None:
        parsed = urlparse(logo_url)
        if parsed.scheme != "https" or not parsed.netloc:
            raise ValidationError(
                "logo URL must start with https://", code="invalid_logo_url"
            )

    try:
        parsed_category = IssuerCategory(category.strip().upper())
        parsed_industry = IssuerIndustry(industry.strip().upper())
    except ValueError as e:
        raise ValidationError(str(e), code="invalid_classification") from None

    return {
        "name": name,
        "domain": domain,
        "logo_url": logo_url,
        "category": parsed_category,
        "industry": parsed_industry,
    }


class IssuerService:
    def __init__(self, uow_factory: UnitOfWorkFactory, gateway: IssuanceGateway) -> None:
        self._uow = uow_factory
        self._gateway = gateway

    @as_result
    async def create_issuer(
        self,
        principal: Principal,
        *,
        name: str,
        domain: str,
        logo_url: str | None = None,
        category: str = "OTHER",
        industry: str = "OTHER",
    ) -> Issuer:
        if not principal.has_role("issuer"):
            raise AuthorizationError("only issuer accounts can register an issuer")
        details = _validated_details(name, domain, logo_url, category, industry)

        async with self._uow() as uow:
            if await uow.issuers.get_by_owner(principal.user_id) is not None:
                raise PreconditionError(
                    "you already have an issuer organisation", code="issuer_exists"
                )
            issuer = await uow.issuers.add(
                Issuer.new(owner_user_id=principal.user_id, **details)
            )

        logger.info(
            "Issuer %d registered by user=%d, pending review",
            issuer.id,
            principal.user_id,
            extra={"issuer_id": issuer.id},
        )
        return issuer

    @as_result
    async def update_issuer_status(
        self,
        issuer_id: int,
        status: str,
        principal: Principal,
        rejection_reason: str | None = None,
    ) -> Issuer:
        if not principal.is_platform_admin():
            raise AuthorizationError("admin role required")
        try:
            new_status = IssuerStatus(status.strip().upper())
        except ValueError:
            raise ValidationError(
                f"unknown issuer status {status!r}", code="invalid_status"
            ) from None
        reason = (rejection_reason or "").strip() or None
        if new_status == IssuerStatus.REJECTED:
            if reason is None:
                raise ValidationError(
                    "rejection reason is required when rejecting an issuer",
                    code="missing_reason",
                )
            if len(reason) > MAX_REASON_LENGTH:
                raise ValidationError("rejection reason is too long", code="invalid_reason")
        else:
            reason = None

        async with self._uow() as uow:
            issuer = await uow.issuers.get(issuer_id)
            if issuer is None:
                raise NotFoundError("issuer not found")

        minted: str | None = None
        if new_status == IssuerStatus.ACTIVE and not issuer.did:
            minted = await self._gateway.create_did()

        recorded = False
        try:
            async with self._uow() as uow:
                issuer = await uow.issuers.get(issuer_id)
                if issuer is None:
                    raise NotFoundError("issuer not found")
                changes: dict = {"status": new_status, "rejection_reason": reason}
                if minted is not None and not issuer.did:
                    changes["did"] = minted
                updated = await uow.issuers.update(replace(issuer, **changes))
            recorded = "did" in changes
        finally:
            if minted is not None and not recorded:
                report_unrecorded_did(minted, f"issuer:{issuer_id}")

        logger.info(
            "Issuer %d status -> %s by admin=%d%s",
            issuer_id,
            new_status,
            principal.user_id,
            " (DID minted)" if recorded else "",
            extra={"issuer_id": issuer_id},
        )
        return updated

    @as_result
    async def resubmit_issuer(
        self,
        principal: Principal,
        *,
        name: str,
        domain: str,
        logo_url: str | None = None,
        category: str = "OTHER",
        industry: str = "OTHER",
    ) -> Issuer:
        details = _validated_details(name, domain, logo_url, category, industry)
        async with self._uow() as uow:
            issuer = await uow.issuers.get_by_owner(principal.user_id)
            if issuer is None:
                raise NotFoundError("issuer not found")
            if issuer.status != IssuerStatus.REJECTED:
                raise PreconditionError(
                    "only rejected issuers can be updated", code="invalid_transition"
                )
            updated = await uow.issuers.update(
                replace(issuer, status=IssuerStatus.PENDING, **details)
            )

        logger.info(
            "Issuer %d resubmitted for review",
            updated.id,
            extra={"issuer_id": updated.id},
        )
        return updated
