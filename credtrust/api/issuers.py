from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from credtrust.api.dependencies import did_registry, issuer_service, require_user
from credtrust.api.results import unwrap
from credtrust.api.schemas import DidIn, IssuerIn, IssuerOut
from credtrust.models.principal import Principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/issuers", tags=["issuers"])


@router.post("", response_model=IssuerOut, status_code=201)
async def create_issuer(
    body: IssuerIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> IssuerOut:
    issuer = unwrap(
        await issuer_service.create_issuer(
            principal,
            name=body.name,
            domain=body.domain,
            logo_url=body.logo_url,
            category=body.category,
            industry=body.industry,
        )
    )
    return IssuerOut.from_domain(issuer)


@router.put("/me", response_model=IssuerOut)
async def resubmit_issuer(
    body: IssuerIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> IssuerOut:
    """Edit a rejected issuer and send it back for review."""
    issuer = unwrap(
        await issuer_service.resubmit_issuer(
            principal,
            name=body.name,
            domain=body.domain,
            logo_url=body.logo_url,
            category=body.category,
            industry=body.industry,
        )
    )
    return IssuerOut.from_domain(issuer)


@router.post("/{issuer_id}/did", response_model=IssuerOut)
async def assign_issuer_did(
    issuer_id: int,
    principal: Annotated[Principal, Depends(require_user)],
    body: DidIn | None = None,
) -> IssuerOut:
    issuer = unwrap(
        await did_registry.assign_issuer_did(
            issuer_id, principal, body.did if body else None
        )
    )
    return IssuerOut.from_domain(issuer)
