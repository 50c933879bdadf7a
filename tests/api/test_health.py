from __future__ import annotations

from fastapi.testclient import TestClient


def test_health_reports_in_memory_backends(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "checks": {"database": "in_memory", "issuance": "in_memory"},
    }
