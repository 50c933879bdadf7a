"""Bearer token handling shared by every authenticated route."""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from fastapi.testclient import TestClient

from credtrust.core.config import SETTINGS
from credtrust.services import token_service
from tests.conftest import mint_token
from tests.signing import SIGNING_KEY, public_pem


def _get(client: TestClient, token: str):
    return client.get("/v1/credentials", headers={"Authorization": f"Bearer {token}"})


def test_missing_token_is_401(client: TestClient) -> None:
    resp = client.get("/v1/credentials")
    assert resp.status_code == 401


def test_garbage_token_is_401(client: TestClient) -> None:
    resp = _get(client, "not.a.jwt")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token"
    assert resp.headers["www-authenticate"] == "Bearer"


def test_token_signed_with_configured_key_is_accepted(client: TestClient) -> None:
    assert SETTINGS.jwt_public_key == public_pem(SIGNING_KEY).strip()
    resp = _get(client, mint_token(1, role="candidate"))
    assert resp.status_code == 200


def test_token_signed_with_other_key_is_401(client: TestClient) -> None:
    stranger = ec.generate_private_key(ec.SECP256R1())
    resp = _get(client, mint_token(1, key=stranger))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token"


def test_expired_token_is_401(client: TestClient) -> None:
    resp = _get(client, mint_token(1, expires_in=timedelta(minutes=-1)))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token expired"


def test_unknown_role_is_401(client: TestClient) -> None:
    resp = _get(client, mint_token(1, role="superuser"))
    assert resp.status_code == 401


def test_non_numeric_subject_is_401(client: TestClient) -> None:
    resp = _get(client, mint_token("alice"))
    assert resp.status_code == 401


def test_decode_returns_claims() -> None:
    claims = token_service.decode_access_token(mint_token(7, role="issuer"))
    assert claims["sub"] == "7"
    assert claims["role"] == "issuer"


# ---- verifying key loading ----


def test_load_verifying_key_from_settings() -> None:
    key = token_service.load_verifying_key(SETTINGS)
    assert key.public_numbers() == SIGNING_KEY.public_key().public_numbers()


def test_load_verifying_key_rejects_non_ec_key() -> None:
    rsa_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    with pytest.raises(ValueError, match="P-256"):
        token_service.load_verifying_key(
            replace(SETTINGS, jwt_public_key=public_pem(rsa_key))  # type: ignore[arg-type]
        )


def test_load_verifying_key_falls_back_outside_prod() -> None:
    key = token_service.load_verifying_key(replace(SETTINGS, jwt_public_key=None))
    assert isinstance(key, ec.EllipticCurvePublicKey)
    assert key.public_numbers() != SIGNING_KEY.public_key().public_numbers()


def test_load_verifying_key_required_in_prod() -> None:
    with pytest.raises(RuntimeError, match="JWT_PUBLIC_KEY"):
        token_service.load_verifying_key(
            replace(SETTINGS, app_env="prod", jwt_public_key=None)
        )
