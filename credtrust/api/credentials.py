"""Credential lifecycle endpoints.

- POST /v1/credentials                   candidate submits a claim
- GET  /v1/credentials                   candidate's own credentials (paged)
- GET  /v1/credentials/{id}              owner, linked issuer or admin
- POST /v1/credentials/{id}/approve      linked issuer; signs a VC once
- POST /v1/credentials/{id}/reject       linked issuer
- POST /v1/credentials/{id}/unverify     linked issuer
- GET  /v1/credentials/{id}/verify       public check of the stored VC
- GET  /v1/issuer/requests               the caller's issuer review queue
"""

from __future__ import annotations

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query

from credtrust.api.dependencies import lifecycle, require_user
from credtrust.api.results import unwrap
from credtrust.api.schemas import (
    CredentialIn,
    CredentialOut,
    CredentialPageOut,
    VcVerificationOut,
)
from credtrust.core.errors import ValidationError
from credtrust.models.credential import CredentialQuery, CredentialStatus
from credtrust.models.principal import Principal

router = APIRouter(tags=["credentials"])

SortField = Literal["title", "category", "status", "created_at"]


def page_query(
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
    sort: SortField = "created_at",
    order: Literal["asc", "desc"] = "desc",
    search: str = "",
    status: str | None = None,
) -> CredentialQuery:
    try:
        status_filter = CredentialStatus(status.lower()) if status else None
    except ValueError:
        raise ValidationError(f"unknown status {status!r}", code="invalid_status") from None
    return CredentialQuery(
        page=page,
        page_size=page_size,
        sort=sort,
        order=order,
        search=search.strip(),
        status=status_filter,
    )


@router.post("/v1/credentials", response_model=CredentialOut, status_code=201)
async def submit_credential(
    body: CredentialIn,
    principal: Annotated[Principal, Depends(require_user)],
) -> CredentialOut:
    credential = unwrap(
        await lifecycle.submit(
            principal,
            category=body.category,
            title=body.title,
            sub_type=body.sub_type,
            file_url=body.file_url,
            issuer_id=body.issuer_id,
        )
    )
    return CredentialOut.from_domain(credential)


@router.get("/v1/credentials", response_model=CredentialPageOut)
async def list_my_credentials(
    principal: Annotated[Principal, Depends(require_user)],
    query: Annotated[CredentialQuery, Depends(page_query)],
) -> CredentialPageOut:
    page = unwrap(await lifecycle.list_candidate_credentials(principal, query))
    return CredentialPageOut.from_domain(page, number=query.page, size=query.page_size)


@router.get("/v1/credentials/{credential_id}", response_model=CredentialOut)
async def get_credential(
    credential_id: int,
    principal: Annotated[Principal, Depends(require_user)],
) -> CredentialOut:
    return CredentialOut.from_domain(
        unwrap(await lifecycle.get_credential(credential_id, principal))
    )


@router.post("/v1/credentials/{credential_id}/approve", response_model=CredentialOut)
async def approve_credential(
    credential_id: int,
    principal: Annotated[Principal, Depends(require_user)],
) -> CredentialOut:
    return CredentialOut.from_domain(
        unwrap(await lifecycle.approve(credential_id, principal))
    )


@router.post("/v1/credentials/{credential_id}/reject", response_model=CredentialOut)
async def reject_credential(
    credential_id: int,
    principal: Annotated[Principal, Depends(require_user)],
) -> CredentialOut:
    return CredentialOut.from_domain(
        unwrap(await lifecycle.reject(credential_id, principal))
    )


@router.post("/v1/credentials/{credential_id}/unverify", response_model=CredentialOut)
async def unverify_credential(
    credential_id: int,
    principal: Annotated[Principal, Depends(require_user)],
) -> CredentialOut:
    return CredentialOut.from_domain(
        unwrap(await lifecycle.unverify(credential_id, principal))
    )


@router.get("/v1/credentials/{credential_id}/verify", response_model=VcVerificationOut)
async def verify_credential(credential_id: int) -> VcVerificationOut:
    check = unwrap(await lifecycle.verify_vc(credential_id))
    return VcVerificationOut(
        credential_id=check.credential_id,
        status=check.status.value,
        vc_valid=check.vc_valid,
    )


@router.get("/v1/issuer/requests", response_model=CredentialPageOut)
async def list_issuer_requests(
    principal: Annotated[Principal, Depends(require_user)],
    query: Annotated[CredentialQuery, Depends(page_query)],
) -> CredentialPageOut:
    page = unwrap(await lifecycle.list_issuer_requests(principal, query))
    return CredentialPageOut.from_domain(page, number=query.page, size=query.page_size)
