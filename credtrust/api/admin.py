from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends

from credtrust.api.dependencies import cascade, did_registry, issuer_service, require_role
from credtrust.api.results import unwrap
from credtrust.api.schemas import (
    DidIn,
    IssuerDeletedOut,
    IssuerOut,
    IssuerStatusIn,
    PlatformDidOut,
    UserDeletedOut,
)
from credtrust.models.principal import Principal

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

AdminPrincipal = Annotated[Principal, Depends(require_role("admin"))]


@router.get("/platform-did", response_model=PlatformDidOut)
async def get_platform_did(principal: AdminPrincipal) -> PlatformDidOut:
    return PlatformDidOut(did=unwrap(await did_registry.get_platform_did()))


@router.put("/platform-did", response_model=PlatformDidOut)
async def set_platform_did(body: DidIn, principal: AdminPrincipal) -> PlatformDidOut:
    did = unwrap(await did_registry.set_platform_did(body.did, principal))
    return PlatformDidOut(did=did)


@router.patch("/issuers/{issuer_id}/status", response_model=IssuerOut)
async def update_issuer_status(
    issuer_id: int, body: IssuerStatusIn, principal: AdminPrincipal
) -> IssuerOut:
    issuer = unwrap(
        await issuer_service.update_issuer_status(
            issuer_id, body.status, principal, body.rejection_reason
        )
    )
    return IssuerOut.from_domain(issuer)


@router.delete("/issuers/{issuer_id}", response_model=IssuerDeletedOut)
async def delete_issuer(issuer_id: int, principal: AdminPrincipal) -> IssuerDeletedOut:
    reset = unwrap(await cascade.delete_issuer(issuer_id, principal))
    logger.info("Admin user=%s deleted issuer=%d", principal.user_id, issuer_id)
    return IssuerDeletedOut(issuer_id=issuer_id, credentials_reset=reset)


@router.delete("/users/{user_id}", response_model=UserDeletedOut)
async def delete_user(user_id: int, principal: AdminPrincipal) -> UserDeletedOut:
    summary = unwrap(await cascade.delete_user(user_id, principal))
    return UserDeletedOut(**asdict(summary))
