"""JWT access token validation (ES256).

The surrounding platform owns login and sessions and signs the access
tokens.  This service only needs to read who is calling and with which
platform role, so the token carries exactly that: `sub` (the integer user
id, as a string) and `role`.  The platform's verifying key comes from
JWT_PUBLIC_KEY.
"""

from __future__ import annotations

import logging

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from credtrust.core.config import SETTINGS, Settings

logger = logging.getLogger(__name__)

ALGORITHM = "ES256"
ISSUER = "credtrust"
AUDIENCE = "credtrust"


def load_verifying_key(settings: Settings) -> ec.EllipticCurvePublicKey:
    """Return the public key tokens are checked against.

    Outside prod a missing key falls back to an ephemeral one, which no
    external token can match; every bearer token is then refused.
    """
    if settings.jwt_public_key is None:
        if settings.is_prod:
            raise RuntimeError("JWT_PUBLIC_KEY is required in prod")
        logger.warning("JWT_PUBLIC_KEY not set, using an ephemeral key; all tokens will fail")
        return ec.generate_private_key(ec.SECP256R1()).public_key()

    key = serialization.load_pem_public_key(settings.jwt_public_key.encode())
    if not isinstance(key, ec.EllipticCurvePublicKey) or not isinstance(
        key.curve, ec.SECP256R1
    ):
        raise ValueError("JWT_PUBLIC_KEY must be a P-256 EC public key for ES256")
    return key


_public_key = load_verifying_key(SETTINGS)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins the algorithm to ES256 so alg:none and alg-switching are refused.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti", "role"]},
    )
