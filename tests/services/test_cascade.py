"""CascadeCleanup: issuer deletion, user deletion, member removal."""

from __future__ import annotations

import asyncio

import pytest

from credtrust.core.errors import (
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    PreconditionError,
)
from credtrust.models.activity import ActivityLog, ActivityType
from credtrust.models.candidate import QuizAttempt
from credtrust.models.credential import CredentialCategory, CredentialStatus
from credtrust.models.pipeline import Pipeline, PipelineCandidate
from credtrust.models.team import TeamMembership
from credtrust.models.user import User
from credtrust.services.cascade import CascadeCleanup
from credtrust.services.lifecycle import LifecycleCoordinator
from tests.conftest import World, add_user_with_team, principal_of, seed_world


@pytest.fixture
def world(db) -> World:
    return asyncio.run(seed_world(db))


@pytest.fixture
def cascade(uow_factory) -> CascadeCleanup:
    return CascadeCleanup(uow_factory)


def _verified_credentials(uow_factory, gateway, world: World, n: int) -> list[int]:
    coordinator = LifecycleCoordinator(uow_factory, gateway)

    async def run() -> list[int]:
        ids = []
        for i in range(n):
            cred = (
                await coordinator.submit(
                    principal_of(world.candidate),
                    category=CredentialCategory.CERTIFICATION,
                    title=f"Cert {i}",
                    sub_type="cert",
                    issuer_id=world.issuer.id,
                )
            ).unwrap()
            await coordinator.approve(cred.id, principal_of(world.issuer_owner))
            ids.append(cred.id)
        return ids

    return asyncio.run(run())


# ---- delete_issuer ----


def test_delete_issuer_resets_linked_credentials(db, cascade, uow_factory, gateway, world) -> None:
    ids = _verified_credentials(uow_factory, gateway, world, 3)

    result = asyncio.run(cascade.delete_issuer(world.issuer.id, principal_of(world.admin)))

    assert result.value == 3
    assert asyncio.run(db.issuers.get(world.issuer.id)) is None
    for cid in ids:
        cred = asyncio.run(db.credentials.get(cid))
        assert cred.issuer_id is None
        assert cred.status == CredentialStatus.UNVERIFIED
        assert cred.verified is False
        assert cred.verified_at is None


def test_delete_issuer_requires_admin(cascade, world) -> None:
    result = asyncio.run(
        cascade.delete_issuer(world.issuer.id, principal_of(world.issuer_owner))
    )
    assert isinstance(result.error, AuthorizationError)


def test_delete_missing_issuer_is_not_found(cascade, world) -> None:
    result = asyncio.run(cascade.delete_issuer(42, principal_of(world.admin)))
    assert isinstance(result.error, NotFoundError)


# ---- delete_user ----


def test_delete_candidate_removes_everything_it_owns(
    db, cascade, uow_factory, gateway, world
) -> None:
    ids = _verified_credentials(uow_factory, gateway, world, 2)
    candidate = asyncio.run(db.candidates.get_by_user(world.candidate.id))

    async def seed() -> None:
        await db.quiz_attempts.add(QuizAttempt(id=0, candidate_id=candidate.id, quiz_id=1))
        pipeline = await db.pipelines.add(
            Pipeline.new(recruiter_id=world.admin.id, name="Backend hires")
        )
        await db.pipeline_candidates.add(
            PipelineCandidate(id=0, pipeline_id=pipeline.id, candidate_id=candidate.id)
        )
        await db.activity.add(
            ActivityLog.new(
                team_id=world.team.id,
                user_id=world.candidate.id,
                action=ActivityType.CREATE_DID,
            )
        )

    asyncio.run(seed())

    result = asyncio.run(cascade.delete_user(world.candidate.id, principal_of(world.admin)))

    summary = result.value
    assert summary.credentials_deleted == 2
    assert summary.quiz_attempts == 1
    assert summary.pipeline_entries == 1
    assert summary.activity_logs == 1
    assert summary.memberships == 1
    assert summary.teams_deleted == 1
    assert asyncio.run(db.users.get(world.candidate.id)) is None
    assert asyncio.run(db.candidates.get(candidate.id)) is None
    assert asyncio.run(db.teams.get(world.team.id)) is None
    assert all(asyncio.run(db.credentials.get(cid)) is None for cid in ids)
    assert db.pipeline_candidates._rows == {}
    # The recruiter's pipeline itself survives.
    assert len(db.pipelines._rows) == 1


def test_delete_recruiter_removes_all_pipelines(db, cascade, world) -> None:
    candidate = asyncio.run(db.candidates.get_by_user(world.candidate.id))

    async def seed() -> tuple[User, int]:
        recruiter, _ = await add_user_with_team(db, "rec@example.com", "recruiter")
        for i in range(4):
            pipeline = await db.pipelines.add(
                Pipeline.new(recruiter_id=recruiter.id, name=f"Round {i}")
            )
            await db.pipeline_candidates.add(
                PipelineCandidate(id=0, pipeline_id=pipeline.id, candidate_id=candidate.id)
            )
        other = await db.pipelines.add(Pipeline.new(recruiter_id=world.admin.id, name="Keep"))
        return recruiter, other.id

    recruiter, kept = asyncio.run(seed())

    summary = asyncio.run(cascade.delete_user(recruiter.id, principal_of(world.admin))).value

    assert summary.pipelines == 4
    assert summary.pipeline_entries == 4
    assert list(db.pipelines._rows) == [kept]
    assert db.pipeline_candidates._rows == {}


def test_delete_issuer_owner_detaches_credentials(
    db, cascade, uow_factory, gateway, world
) -> None:
    ids = _verified_credentials(uow_factory, gateway, world, 3)

    summary = asyncio.run(
        cascade.delete_user(world.issuer_owner.id, principal_of(world.admin))
    ).value

    assert summary.issuer_deleted is True
    assert summary.credentials_detached == 3
    assert asyncio.run(db.issuers.get(world.issuer.id)) is None
    for cid in ids:
        cred = asyncio.run(db.credentials.get(cid))
        assert cred.issuer_id is None
        assert cred.status == CredentialStatus.UNVERIFIED


def test_delete_user_rehomes_shared_team(db, cascade, world) -> None:
    asyncio.run(
        db.memberships.add(
            TeamMembership.new(team_id=world.team.id, user_id=world.issuer_owner.id)
        )
    )

    summary = asyncio.run(
        cascade.delete_user(world.candidate.id, principal_of(world.admin))
    ).value

    assert summary.teams_deleted == 0
    assert summary.teams_rehomed == 1
    team = asyncio.run(db.teams.get(world.team.id))
    assert team.creator_user_id == world.issuer_owner.id


def test_delete_user_refuses_self_delete(db, cascade, world) -> None:
    result = asyncio.run(cascade.delete_user(world.admin.id, principal_of(world.admin)))

    assert isinstance(result.error, PreconditionError)
    assert result.error.code == "self_delete"
    assert asyncio.run(db.users.get(world.admin.id)) is not None


def test_delete_user_requires_admin(cascade, world) -> None:
    result = asyncio.run(
        cascade.delete_user(world.candidate.id, principal_of(world.issuer_owner))
    )
    assert isinstance(result.error, AuthorizationError)


def test_delete_missing_user_is_not_found(cascade, world) -> None:
    result = asyncio.run(cascade.delete_user(77, principal_of(world.admin)))
    assert isinstance(result.error, NotFoundError)


def test_delete_user_failure_rolls_everything_back(
    db, cascade, uow_factory, gateway, world, monkeypatch
) -> None:
    ids = _verified_credentials(uow_factory, gateway, world, 2)

    async def broken_delete(user_id: int) -> bool:
        raise PersistenceError("database error")

    monkeypatch.setattr(db.users, "delete", broken_delete)

    result = asyncio.run(cascade.delete_user(world.candidate.id, principal_of(world.admin)))

    assert isinstance(result.error, PersistenceError)
    assert asyncio.run(db.teams.get(world.team.id)) is not None
    assert asyncio.run(db.memberships.list_by_user(world.candidate.id)) != []
    assert all(asyncio.run(db.credentials.get(cid)) is not None for cid in ids)


# ---- remove_team_member ----


def test_remove_member_leaves_personal_team(db, cascade, world) -> None:
    asyncio.run(
        db.memberships.add(
            TeamMembership.new(team_id=world.team.id, user_id=world.issuer_owner.id)
        )
    )

    result = asyncio.run(
        cascade.remove_team_member(
            world.team.id, world.issuer_owner.id, principal_of(world.candidate)
        )
    )

    remaining = result.value
    assert len(remaining) == 1
    assert remaining[0].user_id == world.issuer_owner.id
    assert remaining[0].team_id != world.team.id
    log = asyncio.run(db.activity.list_by_team(world.team.id))
    assert [e.action for e in log] == [ActivityType.REMOVE_TEAM_MEMBER]


def test_remove_member_without_team_gets_new_personal_team(db, cascade, world) -> None:
    async def seed() -> User:
        user = await db.users.add(User.new(email="drifter@example.com", name="Drifter"))
        await db.memberships.add(TeamMembership.new(team_id=world.team.id, user_id=user.id))
        return user

    drifter = asyncio.run(seed())

    remaining = asyncio.run(
        cascade.remove_team_member(world.team.id, drifter.id, principal_of(world.admin))
    ).value

    assert len(remaining) == 1
    personal = asyncio.run(db.teams.get(remaining[0].team_id))
    assert personal.name == "Drifter's Team"
    assert personal.creator_user_id == drifter.id
    assert remaining[0].role == "owner"
    log = asyncio.run(db.activity.list_by_team(personal.id))
    assert [e.action for e in log] == [ActivityType.CREATE_TEAM]


def test_remove_owner_from_own_team_restores_membership(db, cascade, world) -> None:
    remaining = asyncio.run(
        cascade.remove_team_member(
            world.team.id, world.candidate.id, principal_of(world.admin)
        )
    ).value

    assert [(m.team_id, m.role) for m in remaining] == [(world.team.id, "owner")]


def test_remove_member_rejoins_personal_team_they_had_left(db, cascade, world) -> None:
    async def seed() -> int:
        own = (await db.teams.list_created_by(world.issuer_owner.id))[0]
        await db.memberships.remove(own.id, world.issuer_owner.id)
        await db.memberships.add(
            TeamMembership.new(team_id=world.team.id, user_id=world.issuer_owner.id)
        )
        return own.id

    own_team_id = asyncio.run(seed())
    teams_before = len(asyncio.run(db.teams.list_created_by(world.issuer_owner.id)))

    remaining = asyncio.run(
        cascade.remove_team_member(
            world.team.id, world.issuer_owner.id, principal_of(world.candidate)
        )
    ).value

    assert [(m.team_id, m.role) for m in remaining] == [(own_team_id, "owner")]
    assert len(asyncio.run(db.teams.list_created_by(world.issuer_owner.id))) == teams_before


def test_remove_member_by_plain_member_is_forbidden(db, cascade, world) -> None:
    asyncio.run(
        db.memberships.add(
            TeamMembership.new(team_id=world.team.id, user_id=world.issuer_owner.id)
        )
    )
    result = asyncio.run(
        cascade.remove_team_member(
            world.team.id, world.candidate.id, principal_of(world.issuer_owner)
        )
    )
    assert isinstance(result.error, AuthorizationError)


def test_remove_non_member_is_not_found(cascade, world) -> None:
    result = asyncio.run(
        cascade.remove_team_member(
            world.team.id, world.issuer_owner.id, principal_of(world.candidate)
        )
    )
    assert isinstance(result.error, NotFoundError)
