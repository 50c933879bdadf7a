from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from credtrust.api.dependencies import cascade, did_registry, require_user
from credtrust.api.results import unwrap
from credtrust.api.schemas import DidIn, MembershipOut, TeamDidOut
from credtrust.models.principal import Principal

router = APIRouter(prefix="/v1/teams", tags=["teams"])


@router.post("/{team_id}/did", response_model=TeamDidOut, status_code=201)
async def assign_team_did(
    team_id: int,
    principal: Annotated[Principal, Depends(require_user)],
    body: DidIn | None = None,
) -> TeamDidOut:
    did = unwrap(
        await did_registry.assign_team_did(team_id, principal, body.did if body else None)
    )
    return TeamDidOut(team_id=team_id, did=did)


@router.delete("/{team_id}/members/{user_id}", response_model=list[MembershipOut])
async def remove_team_member(
    team_id: int,
    user_id: int,
    principal: Annotated[Principal, Depends(require_user)],
) -> list[MembershipOut]:
    """Remove a member; the response lists the memberships they still hold."""
    remaining = unwrap(await cascade.remove_team_member(team_id, user_id, principal))
    return [MembershipOut.from_domain(m) for m in remaining]
