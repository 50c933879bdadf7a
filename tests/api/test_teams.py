from __future__ import annotations

import asyncio

import pytest

from credtrust.api.dependencies import memory_db
from credtrust.models.team import TeamMembership
from tests.conftest import World, auth, seed_world

LITERAL_DID = "did:cheqd:testnet:11111111-2222-3333-4444-555555555555"


@pytest.fixture
def world() -> World:
    return asyncio.run(seed_world(memory_db, team_did=None))


def test_assign_team_did_mints_when_body_omitted(client, world) -> None:
    resp = client.post(f"/v1/teams/{world.team.id}/did", headers=auth(world.candidate))

    assert resp.status_code == 201
    body = resp.json()
    assert body["team_id"] == world.team.id
    assert body["did"].startswith("did:cheqd:testnet:")


def test_assign_team_did_literal_then_conflict(client, world) -> None:
    headers = auth(world.candidate)
    first = client.post(
        f"/v1/teams/{world.team.id}/did", json={"did": LITERAL_DID}, headers=headers
    )
    assert first.json()["did"] == LITERAL_DID

    second = client.post(f"/v1/teams/{world.team.id}/did", headers=headers)
    assert second.status_code == 409
    assert second.json()["code"] == "already_assigned"
    assert asyncio.run(memory_db.teams.get(world.team.id)).did == LITERAL_DID


def test_assign_team_did_rejects_bad_literal(client, world) -> None:
    resp = client.post(
        f"/v1/teams/{world.team.id}/did",
        json={"did": "cheqd-team"},
        headers=auth(world.candidate),
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_did"


def test_assign_team_did_by_non_owner_forbidden(client, world) -> None:
    resp = client.post(f"/v1/teams/{world.team.id}/did", headers=auth(world.issuer_owner))
    assert resp.status_code == 403


def test_remove_member_returns_remaining_memberships(client, world) -> None:
    asyncio.run(
        memory_db.memberships.add(
            TeamMembership.new(team_id=world.team.id, user_id=world.issuer_owner.id)
        )
    )

    resp = client.delete(
        f"/v1/teams/{world.team.id}/members/{world.issuer_owner.id}",
        headers=auth(world.candidate),
    )

    assert resp.status_code == 200
    remaining = resp.json()
    assert len(remaining) == 1
    assert remaining[0]["user_id"] == world.issuer_owner.id
    assert remaining[0]["role"] == "owner"


def test_remove_unknown_member_is_404(client, world) -> None:
    resp = client.delete(
        f"/v1/teams/{world.team.id}/members/{world.admin.id}",
        headers=auth(world.candidate),
    )
    assert resp.status_code == 404
