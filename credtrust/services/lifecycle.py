"""LifecycleCoordinator: the credential status state machine.

States are UNVERIFIED, PENDING, VERIFIED and REJECTED.  None of them is
terminal: an issuer can reverse its own verification or rejection.

    Transition  From                          Effect
    ----------  ----------------------------  ----------------------------------
    submit      (new)                         PENDING with issuer, else UNVERIFIED
    approve     PENDING, REJECTED, UNVERIFIED VERIFIED, verified_at = now
    reject      any                           REJECTED, verified_at = now
    unverify    VERIFIED                      UNVERIFIED, verified_at = None

Only the owner of the credential's linked issuer may approve, reject or
unverify it.  Every transition runs inside one unit of work, so a failed
check leaves the credential exactly as it was.

APPROVE IS A SAGA
------------------
Signing a verifiable credential is a call to an external network, and that
call cannot join a database transaction.  Approve therefore runs in three
steps:

    1. read unit    validate caller, source state, issuer DID, subject DID
    2. gateway      issue_credential, only if no vc_payload is stored yet
    3. write unit   re-load the row FOR UPDATE, re-validate, persist

An issuance failure in step 2 aborts before anything is written.  If step 3
fails after step 2 succeeded (or a concurrent approve stored its payload
first) the signed credential exists on the network but not here; it is
logged at ERROR with the full payload and counted in
credtrust_issuance_unrecorded_total so it can be reconciled.

A stored vc_payload is never replaced.  Approving a credential that was
unverified earlier reuses the payload it already carries.
"""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlparse

from credtrust.core.errors import (
    AuthorizationError,
    LifecycleError,
    NotFoundError,
    PreconditionError,
    ValidationError,
    as_result,
)
from credtrust.core.metrics import CREDENTIAL_TRANSITIONS, ISSUANCE_UNRECORDED
from credtrust.models.candidate import Candidate
from credtrust.models.credential import (
    Credential,
    CredentialCategory,
    CredentialPage,
    CredentialQuery,
    CredentialStatus,
)
from credtrust.models.issuer import Issuer
from credtrust.models.principal import Principal
from credtrust.repos.credential_store import UNSET
from credtrust.repos.unit_of_work import UnitOfWork, UnitOfWorkFactory
from credtrust.services.issuance_gateway import IssuanceGateway

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_SUB_TYPE_LENGTH = 50


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _counted(transition: str):
    """Count every attempt of a transition by outcome."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                value = await func(*args, **kwargs)
            except LifecycleError as e:
                CREDENTIAL_TRANSITIONS.labels(
                    transition=transition, outcome=str(e.kind)
                ).inc()
                raise
            CREDENTIAL_TRANSITIONS.labels(transition=transition, outcome="ok").inc()
            return value

        return wrapper

    return decorator


@dataclass(frozen=True, slots=True)
class VcVerification:
    credential_id: int
    status: CredentialStatus
    vc_valid: bool


class LifecycleCoordinator:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        gateway: IssuanceGateway,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._uow = uow_factory
        self._gateway = gateway
        self._clock = clock

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    @as_result
    @_counted("submit")
    async def submit(
        self,
        principal: Principal,
        *,
        category: str,
        title: str,
        sub_type: str,
        file_url: str | None = None,
        issuer_id: int | None = None,
    ) -> Credential:
        """Create a credential for the calling candidate.

        Naming an issuer requests review, which needs an ACTIVE issuer and a
        DID on the candidate's team (the future credential subject).
        """
        if not principal.has_role("candidate"):
            raise AuthorizationError("only candidates can add credentials")
        draft = _validated_draft(category, title, sub_type, file_url)

        async with self._uow() as uow:
            if issuer_id is not None:
                issuer = await uow.issuers.get(issuer_id)
                if issuer is None:
                    raise NotFoundError("issuer not found")
                if not issuer.is_active:
                    raise PreconditionError("issuer not active", code="issuer_not_active")
                await _team_did_for_user(uow, principal.user_id)

            candidate = await uow.candidates.get_by_user(principal.user_id)
            if candidate is None:
                candidate = await uow.candidates.add(
                    Candidate.new(user_id=principal.user_id)
                )

            credential = await uow.credentials.add(
                Credential.new(candidate_id=candidate.id, issuer_id=issuer_id, **draft)
            )

        logger.info(
            "Credential %d submitted status=%s issuer=%s",
            credential.id,
            credential.status,
            issuer_id,
            extra={"credential_id": credential.id, "transition": "submit"},
        )
        return credential

    # ------------------------------------------------------------------
    # Approve (saga)
    # ------------------------------------------------------------------

    @as_result
    @_counted("approve")
    async def approve(self, credential_id: int, principal: Principal) -> Credential:
        async with self._uow() as uow:
            credential = await _load(uow, credential_id)
            issuer = await _owned_issuer(uow, credential, principal)
            issuer_did = _ensure_approvable(credential, issuer)
            subject_did = await _team_did_for_candidate(uow, credential.candidate_id)
            candidate_name = await _candidate_name(uow, credential.candidate_id)

        payload: dict[str, Any] | None = None
        if credential.vc_payload is None:
            payload = await self._gateway.issue_credential(
                issuer_did=issuer_did,
                subject_did=subject_did,
                attributes={
                    "credentialTitle": credential.title,
                    "candidateName": candidate_name,
                },
                credential_type=credential.sub_type,
            )
        else:
            logger.info(
                "Credential %d already carries a VC, skipping issuance",
                credential_id,
                extra={"credential_id": credential_id},
            )

        recorded = False
        try:
            async with self._uow() as uow:
                current = await _load(uow, credential_id, for_update=True)
                issuer = await _owned_issuer(uow, current, principal)
                _ensure_approvable(current, issuer)

                store_payload = payload is not None and current.vc_payload is None
                if payload is not None and not store_payload:
                    logger.warning(
                        "Credential %d gained a VC concurrently; keeping the stored one",
                        credential_id,
                        extra={"credential_id": credential_id},
                    )
                updated = await uow.credentials.update_status(
                    credential_id,
                    CredentialStatus.VERIFIED,
                    verified_at=self._clock(),
                    vc_payload=payload if store_payload else UNSET,
                )
            recorded = store_payload
        finally:
            if payload is not None and not recorded:
                _report_unrecorded_credential(credential_id, payload)

        logger.info(
            "Credential %d approved by issuer=%d",
            credential_id,
            issuer.id,
            extra={
                "credential_id": credential_id,
                "issuer_id": issuer.id,
                "transition": "approve",
            },
        )
        return updated

    # ------------------------------------------------------------------
    # Reject / Unverify
    # ------------------------------------------------------------------

    @as_result
    @_counted("reject")
    async def reject(self, credential_id: int, principal: Principal) -> Credential:
        async with self._uow() as uow:
            credential = await _load(uow, credential_id, for_update=True)
            issuer = await _owned_issuer(uow, credential, principal)
            updated = await uow.credentials.update_status(
                credential_id, CredentialStatus.REJECTED, verified_at=self._clock()
            )
        logger.info(
            "Credential %d rejected by issuer=%d (was %s)",
            credential_id,
            issuer.id,
            credential.status,
            extra={"credential_id": credential_id, "transition": "reject"},
        )
        return updated

    @as_result
    @_counted("unverify")
    async def unverify(self, credential_id: int, principal: Principal) -> Credential:
        async with self._uow() as uow:
            credential = await _load(uow, credential_id, for_update=True)
            issuer = await _owned_issuer(uow, credential, principal)
            if credential.status != CredentialStatus.VERIFIED:
                raise PreconditionError(
                    f"cannot unverify a {credential.status} credential",
                    code="invalid_transition",
                )
            # vc_payload is left in place; a later approve reuses it.
            updated = await uow.credentials.update_status(
                credential_id, CredentialStatus.UNVERIFIED, verified_at=None
            )
        logger.info(
            "Credential %d unverified by issuer=%d",
            credential_id,
            issuer.id,
            extra={"credential_id": credential_id, "transition": "unverify"},
        )
        return updated

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @as_result
    async def get_credential(self, credential_id: int, principal: Principal) -> Credential:
        async with self._uow() as uow:
            credential = await _load(uow, credential_id)
            if principal.is_platform_admin():
                return credential
            candidate = await uow.candidates.get(credential.candidate_id)
            if candidate is not None and candidate.user_id == principal.user_id:
                return credential
            if credential.issuer_id is not None:
                issuer = await uow.issuers.get(credential.issuer_id)
                if issuer is not None and issuer.owner_user_id == principal.user_id:
                    return credential
        raise AuthorizationError("not allowed to view this credential")

    @as_result
    async def list_candidate_credentials(
        self, principal: Principal, query: CredentialQuery
    ) -> CredentialPage:
        async with self._uow() as uow:
            candidate = await uow.candidates.get_by_user(principal.user_id)
            if candidate is None:
                return CredentialPage(rows=[], has_next=False)
            return await uow.credentials.list_by_candidate(candidate.id, query)

    @as_result
    async def list_issuer_requests(
        self, principal: Principal, query: CredentialQuery
    ) -> CredentialPage:
        """Credentials linked to the caller's issuer (its review queue)."""
        async with self._uow() as uow:
            issuer = await uow.issuers.get_by_owner(principal.user_id)
            if issuer is None:
                raise NotFoundError("no issuer registered for this user")
            return await uow.credentials.list_by_issuer(issuer.id, query)

    @as_result
    async def verify_vc(self, credential_id: int) -> VcVerification:
        """Advisory check of the stored VC against the network."""
        async with self._uow() as uow:
            credential = await _load(uow, credential_id)
        if credential.vc_payload is None:
            raise PreconditionError(
                "credential has no verifiable credential", code="missing_vc"
            )
        valid = await self._gateway.verify_credential(credential.vc_payload)
        return VcVerification(
            credential_id=credential_id, status=credential.status, vc_valid=valid
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _validated_draft(
    category: str, title: str, sub_type: str, file_url: str | None
) -> dict[str, Any]:
    try:
        parsed_category = CredentialCategory(category.strip().upper())
    except ValueError:
        raise ValidationError(
            f"unknown category {category!r}", code="invalid_category"
        ) from None

    title = title.strip()
    if not title or len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(
            f"title must be 1-{MAX_TITLE_LENGTH} characters", code="invalid_title"
        )
    sub_type = sub_type.strip()
    if not sub_type or len(sub_type) > MAX_SUB_TYPE_LENGTH:
        raise ValidationError(
            f"sub_type must be 1-{MAX_SUB_TYPE_LENGTH} characters",
            code="invalid_sub_type",
        )

    file_url = (file_url or "").strip() or None
    if file_url is not None and urlparse(file_url).scheme not in ("http", "https"):
        raise ValidationError("file_url must be an http(s) URL", code="invalid_file_url")

    return {
        "category": parsed_category,
        "title": title,
        "sub_type": sub_type,
        "file_url": file_url,
    }


async def _load(
    uow: UnitOfWork, credential_id: int, *, for_update: bool = False
) -> Credential:
    if for_update:
        credential = await uow.credentials.get_for_update(credential_id)
    else:
        credential = await uow.credentials.get(credential_id)
    if credential is None:
        raise NotFoundError("credential not found")
    return credential


async def _owned_issuer(
    uow: UnitOfWork, credential: Credential, principal: Principal
) -> Issuer:
    if credential.issuer_id is None:
        raise AuthorizationError("credential has no issuer to review it")
    issuer = await uow.issuers.get(credential.issuer_id)
    if issuer is None or issuer.owner_user_id != principal.user_id:
        raise AuthorizationError("only the linked issuer can review this credential")
    return issuer


def _ensure_approvable(credential: Credential, issuer: Issuer) -> str:
    """Raise unless the credential can be signed; return the signing DID."""
    if credential.status == CredentialStatus.VERIFIED:
        raise PreconditionError(
            "credential is already verified", code="invalid_transition"
        )
    if not issuer.did:
        raise PreconditionError("issuer has no DID", code="missing_issuer_did")
    return issuer.did


async def _team_did_for_user(uow: UnitOfWork, user_id: int) -> str:
    # The user's team is the one they joined first.
    memberships = await uow.memberships.list_by_user(user_id)
    team = await uow.teams.get(memberships[0].team_id) if memberships else None
    if team is None or not team.did:
        raise PreconditionError(
            "candidate team has no DID", code="missing_subject_did"
        )
    return team.did


async def _team_did_for_candidate(uow: UnitOfWork, candidate_id: int) -> str:
    candidate = await uow.candidates.get(candidate_id)
    if candidate is None:
        raise NotFoundError("candidate not found")
    return await _team_did_for_user(uow, candidate.user_id)


async def _candidate_name(uow: UnitOfWork, candidate_id: int) -> str:
    candidate = await uow.candidates.get(candidate_id)
    user = await uow.users.get(candidate.user_id) if candidate else None
    return user.display_name if user else "Unknown"


def _report_unrecorded_credential(credential_id: int, payload: dict[str, Any]) -> None:
    ISSUANCE_UNRECORDED.labels(artifact="credential").inc()
    logger.error(
        "issued credential not recorded: credential_id=%d payload=%s",
        credential_id,
        json.dumps(payload, sort_keys=True, default=str),
        extra={"credential_id": credential_id, "transition": "approve"},
    )
