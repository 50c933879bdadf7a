"""DidRegistry: DID assignment for teams, issuers and the platform.

Team and issuer DIDs are write-once.  The first assignment wins and every
later attempt fails with AlreadyAssignedError, leaving the stored value
alone.  The platform DID is the opposite: a mutable singleton that an
admin may overwrite at any time.

A DID is either a caller-supplied literal (`did:<method>:<id>`) or minted
through the IssuanceGateway.  Minting is a network call, so it never runs
inside a unit of work:

    1. read unit   - authorize, check nothing is assigned yet
    2. gateway     - mint (skipped for a literal)
    3. write unit  - re-check, persist

If step 3 finds that a concurrent request assigned a DID in the meantime,
the freshly minted DID is logged and counted as unrecorded.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace

from credtrust.core.errors import (
    AlreadyAssignedError,
    AuthorizationError,
    LifecycleError,
    NotFoundError,
    ValidationError,
    as_result,
)
from credtrust.core.metrics import ISSUANCE_UNRECORDED
from credtrust.models.activity import ActivityLog, ActivityType
from credtrust.models.issuer import Issuer, IssuerStatus
from credtrust.models.principal import Principal
from credtrust.repos.platform_repo import PLATFORM_DID_KEY
from credtrust.repos.unit_of_work import UnitOfWorkFactory
from credtrust.services.issuance_gateway import IssuanceGateway

logger = logging.getLogger(__name__)

DID_PATTERN = re.compile(r"^did:[a-z0-9]+:[^\s]+$", re.IGNORECASE)


def normalize_did(raw: str | None) -> str | None:
    """Trim a caller-supplied DID; None when blank.

    Raises ValidationError when the value is present but not a DID.
    """
    if raw is None:
        return None
    value = raw.strip()
    if not value:
        return None
    if not DID_PATTERN.match(value):
        raise ValidationError("invalid DID format", code="invalid_did")
    return value


def report_unrecorded_did(did: str, owner: str) -> None:
    ISSUANCE_UNRECORDED.labels(artifact="did").inc()
    logger.error("minted DID not recorded: did=%s owner=%s", did, owner)


class DidRegistry:
    def __init__(self, uow_factory: UnitOfWorkFactory, gateway: IssuanceGateway) -> None:
        self._uow = uow_factory
        self._gateway = gateway

    # ------------------------------------------------------------------
    # Teams
    # ------------------------------------------------------------------

    @as_result
    async def assign_team_did(
        self, team_id: int, principal: Principal, did: str | None = None
    ) -> str:
        literal = normalize_did(did)

        async with self._uow() as uow:
            team = await uow.teams.get(team_id)
            if team is None:
                raise NotFoundError("team not found")
            membership = await uow.memberships.get(team_id, principal.user_id)
            if membership is None or membership.role != "owner":
                raise AuthorizationError("only team owners can assign a DID")
            if team.did:
                raise AlreadyAssignedError("team already has a DID")

        new_did = literal or await self._gateway.create_did()

        try:
            async with self._uow() as uow:
                team = await uow.teams.get(team_id)
                if team is None:
                    raise NotFoundError("team not found")
                if team.did:
                    raise AlreadyAssignedError("team already has a DID")
                await uow.teams.set_did(team_id, new_did)
                await uow.activity.add(
                    ActivityLog.new(
                        team_id=team_id,
                        user_id=principal.user_id,
                        action=ActivityType.CREATE_DID,
                    )
                )
        except LifecycleError:
            if literal is None:
                report_unrecorded_did(new_did, f"team:{team_id}")
            raise

        logger.info(
            "Assigned DID to team=%d by user=%d",
            team_id,
            principal.user_id,
            extra={"team_id": team_id},
        )
        return new_did

    # ------------------------------------------------------------------
    # Issuers
    # ------------------------------------------------------------------

    @as_result
    async def assign_issuer_did(
        self, issuer_id: int, principal: Principal, did: str | None = None
    ) -> Issuer:
        """Link a DID to an issuer; the first DID also activates it.

        DID presence is the activation signal for self-service issuers, so
        this applies from PENDING and REJECTED alike.
        """
        literal = normalize_did(did)

        async with self._uow() as uow:
            issuer = await uow.issuers.get(issuer_id)
            if issuer is None:
                raise NotFoundError("issuer not found")
            if issuer.owner_user_id != principal.user_id:
                raise AuthorizationError("only the issuer owner can assign its DID")
            if issuer.did:
                raise AlreadyAssignedError("issuer already has a DID")

        new_did = literal or await self._gateway.create_did()

        try:
            async with self._uow() as uow:
                issuer = await uow.issuers.get(issuer_id)
                if issuer is None:
                    raise NotFoundError("issuer not found")
                if issuer.did:
                    raise AlreadyAssignedError("issuer already has a DID")
                updated = await uow.issuers.update(
                    replace(
                        issuer,
                        did=new_did,
                        status=IssuerStatus.ACTIVE,
                        rejection_reason=None,
                    )
                )
        except LifecycleError:
            if literal is None:
                report_unrecorded_did(new_did, f"issuer:{issuer_id}")
            raise

        logger.info(
            "Assigned DID to issuer=%d, status now %s",
            issuer_id,
            updated.status,
            extra={"issuer_id": issuer_id},
        )
        return updated

    # ------------------------------------------------------------------
    # Platform
    # ------------------------------------------------------------------

    @as_result
    async def set_platform_did(self, did: str | None, principal: Principal) -> str:
        if not principal.is_platform_admin():
            raise AuthorizationError("only admins can set the platform DID")
        new_did = normalize_did(did) or await self._gateway.create_did()
        async with self._uow() as uow:
            await uow.platform.set(PLATFORM_DID_KEY, new_did)
        logger.info("Platform DID set by user=%d", principal.user_id)
        return new_did

    @as_result
    async def get_platform_did(self) -> str | None:
        async with self._uow() as uow:
            return await uow.platform.get(PLATFORM_DID_KEY)

