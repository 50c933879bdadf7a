from __future__ import annotations

import functools
import sys
import uuid
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so `import credtrust` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Must precede the credtrust imports: it sets JWT_PUBLIC_KEY.
from tests.signing import SIGNING_KEY  # noqa: E402

from credtrust.api.dependencies import memory_db  # noqa: E402
from credtrust.core.errors import ServiceError  # noqa: E402
from credtrust.main import app  # noqa: E402
from credtrust.models.candidate import Candidate  # noqa: E402
from credtrust.models.issuer import Issuer, IssuerStatus  # noqa: E402
from credtrust.models.principal import Principal  # noqa: E402
from credtrust.models.team import Team, TeamMembership  # noqa: E402
from credtrust.models.user import User  # noqa: E402
from credtrust.repos.unit_of_work import InMemoryDatabase, InMemoryUnitOfWork  # noqa: E402
from credtrust.services import token_service  # noqa: E402
from credtrust.services.issuance_gateway import (  # noqa: E402
    InMemoryIssuanceGateway,
    issuance_gateway,
)

TEAM_DID = "did:cheqd:testnet:team-0001"
ISSUER_DID = "did:cheqd:testnet:issuer-0001"


@pytest.fixture(autouse=True)
def reset_memory_db() -> None:
    """Clear the app's in-memory tables between tests."""
    memory_db.clear()


@pytest.fixture(autouse=True)
def reset_gateway() -> None:
    if isinstance(issuance_gateway, InMemoryIssuanceGateway):
        issuance_gateway.reset()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    user_id: int | str = 1,
    role: str = "candidate",
    *,
    expires_in: timedelta = timedelta(minutes=15),
    key: ec.EllipticCurvePrivateKey = SIGNING_KEY,
) -> str:
    """Create an ES256 JWT the way the platform auth server does."""
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "iss": token_service.ISSUER,
        "aud": token_service.AUDIENCE,
        "exp": now + expires_in,
        "iat": now,
        "jti": str(uuid.uuid4()),
        "role": role,
    }
    return jwt.encode(payload, key, algorithm=token_service.ALGORITHM)


def auth(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(user.id, user.role)}"}


def principal_of(user: User) -> Principal:
    return Principal(user_id=user.id, role=user.role)


# ---------------------------------------------------------------------------
# Service-level fixtures: a private database and gateway per test
# ---------------------------------------------------------------------------


@pytest.fixture
def db() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture
def uow_factory(db: InMemoryDatabase):
    return functools.partial(InMemoryUnitOfWork, db)


@pytest.fixture
def gateway() -> InMemoryIssuanceGateway:
    return InMemoryIssuanceGateway()


class FailingGateway(InMemoryIssuanceGateway):
    """Every network call fails the way a timed-out cheqd call does."""

    async def create_did(self) -> str:
        raise ServiceError("create_did timed out", code="issuance_timeout")

    async def issue_credential(self, **kwargs: Any) -> dict[str, Any]:
        raise ServiceError("issue timed out", code="issuance_timeout")


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------


@dataclass
class World:
    admin: User
    candidate: User
    issuer_owner: User
    team: Team
    issuer: Issuer


async def add_user_with_team(
    db: InMemoryDatabase, email: str, role: str, *, team_did: str | None = None
) -> tuple[User, Team]:
    user = await db.users.add(User.new(email=email, name=email.split("@")[0], role=role))
    team = await db.teams.add(
        replace(Team.new(name=f"{user.name}'s Team", creator_user_id=user.id), did=team_did)
    )
    await db.memberships.add(
        TeamMembership.new(team_id=team.id, user_id=user.id, role="owner")
    )
    return user, team


async def seed_world(
    db: InMemoryDatabase,
    *,
    team_did: str | None = TEAM_DID,
    issuer_did: str | None = ISSUER_DID,
    issuer_status: IssuerStatus = IssuerStatus.ACTIVE,
) -> World:
    """An admin, a candidate with a team, and an issuer owned by a third user."""
    admin, _ = await add_user_with_team(db, "admin@example.com", "admin")
    candidate, team = await add_user_with_team(
        db, "cand@example.com", "candidate", team_did=team_did
    )
    await db.candidates.add(Candidate.new(user_id=candidate.id))
    owner, _ = await add_user_with_team(db, "issuer@example.com", "issuer")
    issuer = await db.issuers.add(
        replace(
            Issuer.new(owner_user_id=owner.id, name="Example University", domain="Uni.Example"),
            status=issuer_status,
            did=issuer_did,
        )
    )
    return World(admin=admin, candidate=candidate, issuer_owner=owner, team=team, issuer=issuer)
