from __future__ import annotations

import asyncio

import pytest

from credtrust.api.dependencies import memory_db
from tests.conftest import World, auth, seed_world


@pytest.fixture
def world() -> World:
    return asyncio.run(seed_world(memory_db))


def _verified_credential(client, world: World) -> int:
    cred = client.post(
        "/v1/credentials",
        json={
            "category": "CERTIFICATION",
            "title": "Cloud Practitioner",
            "sub_type": "cert",
            "issuer_id": world.issuer.id,
        },
        headers=auth(world.candidate),
    ).json()
    client.post(f"/v1/credentials/{cred['id']}/approve", headers=auth(world.issuer_owner))
    return cred["id"]


def test_admin_routes_require_admin_role(client, world) -> None:
    resp = client.get("/admin/platform-did", headers=auth(world.issuer_owner))
    assert resp.status_code == 403


def test_platform_did_get_and_set(client, world) -> None:
    headers = auth(world.admin)
    assert client.get("/admin/platform-did", headers=headers).json() == {"did": None}

    minted = client.put("/admin/platform-did", json={}, headers=headers).json()["did"]
    assert minted.startswith("did:cheqd:testnet:")

    literal = "did:cheqd:testnet:platform"
    client.put("/admin/platform-did", json={"did": literal}, headers=headers)
    assert client.get("/admin/platform-did", headers=headers).json() == {"did": literal}


def test_delete_issuer_resets_credentials(client, world) -> None:
    cred_id = _verified_credential(client, world)

    resp = client.delete(f"/admin/issuers/{world.issuer.id}", headers=auth(world.admin))

    assert resp.json() == {"issuer_id": world.issuer.id, "credentials_reset": 1}
    cred = client.get(f"/v1/credentials/{cred_id}", headers=auth(world.candidate)).json()
    assert cred["status"] == "unverified"
    assert cred["issuer_id"] is None


def test_delete_user_summary(client, world) -> None:
    _verified_credential(client, world)

    resp = client.delete(f"/admin/users/{world.candidate.id}", headers=auth(world.admin))

    assert resp.status_code == 200
    summary = resp.json()
    assert summary["user_id"] == world.candidate.id
    assert summary["credentials_deleted"] == 1
    assert summary["teams_deleted"] == 1
    assert summary["issuer_deleted"] is False


def test_admin_cannot_delete_self(client, world) -> None:
    resp = client.delete(f"/admin/users/{world.admin.id}", headers=auth(world.admin))
    assert resp.status_code == 409
    assert resp.json() == {
        "detail": "admins cannot delete their own account",
        "code": "self_delete",
    }
