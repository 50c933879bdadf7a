"""HTTP flow for the credential lifecycle."""

from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from credtrust.api.dependencies import memory_db
from credtrust.models.issuer import IssuerStatus
from credtrust.services.issuance_gateway import issuance_gateway
from tests.conftest import World, auth, seed_world


@pytest.fixture
def world() -> World:
    return asyncio.run(seed_world(memory_db))


def _submit(client: TestClient, world: World, **overrides) -> dict:
    body = {
        "category": "education",
        "title": "BSc Computer Science",
        "sub_type": "bachelor",
        "file_url": "https://files.example/diploma.pdf",
        "issuer_id": world.issuer.id,
    }
    body.update(overrides)
    resp = client.post("/v1/credentials", json=body, headers=auth(world.candidate))
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_submit_returns_pending_credential(client, world) -> None:
    cred = _submit(client, world)
    assert cred["status"] == "pending"
    assert cred["verified"] is False
    assert cred["category"] == "EDUCATION"
    assert cred["has_vc"] is False


def test_submit_validation_error_body(client, world) -> None:
    resp = client.post(
        "/v1/credentials",
        json={"category": "HOBBY", "title": "x", "sub_type": "y"},
        headers=auth(world.candidate),
    )
    assert resp.status_code == 422
    assert resp.json() == {"detail": "unknown category 'HOBBY'", "code": "invalid_category"}


def test_submit_to_inactive_issuer_conflicts(client) -> None:
    world = asyncio.run(seed_world(memory_db, issuer_status=IssuerStatus.PENDING))
    resp = client.post(
        "/v1/credentials",
        json={"category": "OTHER", "title": "x", "sub_type": "y", "issuer_id": world.issuer.id},
        headers=auth(world.candidate),
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "issuer_not_active"


def test_approve_flow(client, world) -> None:
    cred = _submit(client, world)
    owner = auth(world.issuer_owner)

    resp = client.post(f"/v1/credentials/{cred['id']}/approve", headers=owner)
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "verified"
    assert body["verified"] is True
    assert body["has_vc"] is True
    assert body["verified_at"] is not None

    again = client.post(f"/v1/credentials/{cred['id']}/approve", headers=owner)
    assert again.status_code == 409
    assert again.json()["code"] == "invalid_transition"

    check = client.get(f"/v1/credentials/{cred['id']}/verify")
    assert check.status_code == 200
    assert check.json() == {"credential_id": cred["id"], "status": "verified", "vc_valid": True}


def test_reject_then_unverify_is_refused(client, world) -> None:
    cred = _submit(client, world)
    owner = auth(world.issuer_owner)

    rejected = client.post(f"/v1/credentials/{cred['id']}/reject", headers=owner)
    assert rejected.json()["status"] == "rejected"

    resp = client.post(f"/v1/credentials/{cred['id']}/unverify", headers=owner)
    assert resp.status_code == 409


def test_unverify_after_approve(client, world) -> None:
    cred = _submit(client, world)
    owner = auth(world.issuer_owner)
    client.post(f"/v1/credentials/{cred['id']}/approve", headers=owner)

    resp = client.post(f"/v1/credentials/{cred['id']}/unverify", headers=owner)

    assert resp.status_code == 200
    assert resp.json()["status"] == "unverified"
    assert resp.json()["verified_at"] is None
    assert len(issuance_gateway.issued) == 1


def test_candidate_cannot_approve_own_credential(client, world) -> None:
    cred = _submit(client, world)
    resp = client.post(f"/v1/credentials/{cred['id']}/approve", headers=auth(world.candidate))
    assert resp.status_code == 403
    assert resp.json()["code"] == "forbidden"


def test_approve_unknown_credential_is_404(client, world) -> None:
    resp = client.post("/v1/credentials/999/approve", headers=auth(world.issuer_owner))
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


def test_list_my_credentials_paging(client, world) -> None:
    for i in range(3):
        _submit(client, world, title=f"Cert {i}", issuer_id=None)

    resp = client.get(
        "/v1/credentials",
        params={"page_size": 2, "sort": "title", "order": "asc"},
        headers=auth(world.candidate),
    )

    body = resp.json()
    assert [c["title"] for c in body["rows"]] == ["Cert 0", "Cert 1"]
    assert body["has_next"] is True
    assert body["page"] == 1
    assert body["status_counts"]["unverified"] == 3


def test_list_rejects_unknown_sort(client, world) -> None:
    resp = client.get("/v1/credentials", params={"sort": "issuer"}, headers=auth(world.candidate))
    assert resp.status_code == 422


def test_list_rejects_unknown_status_filter(client, world) -> None:
    resp = client.get(
        "/v1/credentials", params={"status": "lost"}, headers=auth(world.candidate)
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "invalid_status"


def test_issuer_requests_queue(client, world) -> None:
    first = _submit(client, world, title="First")
    _submit(client, world, title="Second")
    owner = auth(world.issuer_owner)
    client.post(f"/v1/credentials/{first['id']}/approve", headers=owner)

    resp = client.get("/v1/issuer/requests", params={"status": "pending"}, headers=owner)

    body = resp.json()
    assert [c["title"] for c in body["rows"]] == ["Second"]
    assert body["status_counts"] == {"verified": 1, "pending": 1, "rejected": 0, "unverified": 0}


def test_get_credential_visibility(client, world) -> None:
    cred = _submit(client, world)
    for user in (world.candidate, world.issuer_owner, world.admin):
        resp = client.get(f"/v1/credentials/{cred['id']}", headers=auth(user))
        assert resp.status_code == 200


def test_verify_without_vc_conflicts(client, world) -> None:
    cred = _submit(client, world)
    resp = client.get(f"/v1/credentials/{cred['id']}/verify")
    assert resp.status_code == 409
    assert resp.json()["code"] == "missing_vc"
