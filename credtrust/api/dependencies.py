from __future__ import annotations

import functools
import logging
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from credtrust.db.engine import async_session_factory
from credtrust.models.principal import ROLES, Principal
from credtrust.repos.pg_unit_of_work import PgUnitOfWork
from credtrust.repos.unit_of_work import (
    InMemoryDatabase,
    InMemoryUnitOfWork,
    UnitOfWorkFactory,
)
from credtrust.services import token_service
from credtrust.services.cascade import CascadeCleanup
from credtrust.services.did_registry import DidRegistry
from credtrust.services.issuance_gateway import issuance_gateway
from credtrust.services.issuer_service import IssuerService
from credtrust.services.lifecycle import LifecycleCoordinator

logger = logging.getLogger(__name__)

# Tokens are minted by the platform's auth server; this service only reads them.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/oauth/token")

# ---------------------------------------------------------------------------
# Unit of work selection: PostgreSQL when DATABASE_URL is set, else memory
# ---------------------------------------------------------------------------

memory_db = InMemoryDatabase()

if async_session_factory is not None:
    uow_factory: UnitOfWorkFactory = functools.partial(
        PgUnitOfWork, async_session_factory
    )
else:
    uow_factory = functools.partial(InMemoryUnitOfWork, memory_db)

lifecycle = LifecycleCoordinator(uow_factory, issuance_gateway)
did_registry = DidRegistry(uow_factory, issuance_gateway)
cascade = CascadeCleanup(uow_factory)
issuer_service = IssuerService(uow_factory, issuance_gateway)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Extract and validate the JWT bearer token. Returns a Principal."""
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthorized("Invalid token") from None

    try:
        user_id = int(claims["sub"])
    except (TypeError, ValueError):
        logger.warning("Token rejected: non-numeric sub=%r", claims["sub"])
        raise _unauthorized("Invalid token") from None

    role = claims["role"]
    if role not in ROLES:
        logger.warning("Token rejected: unknown role=%r", role)
        raise _unauthorized("Invalid token")

    principal = Principal(user_id=user_id, role=role)
    logger.debug("Token validated for user=%s role=%s", user_id, role)
    return principal


def require_role(role: str):
    """Dependency factory: demand a specific platform role.

    Usage: Depends(require_role("admin"))
    """

    def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if not principal.has_role(role):
            logger.warning(
                "Access denied: user=%s role=%s required=%s",
                principal.user_id,
                principal.role,
                role,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard
