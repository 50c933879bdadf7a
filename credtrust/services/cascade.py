"""CascadeCleanup: deletions that must not leave dangling references.

Each operation runs in a single unit of work.  Dependent ids are collected
first, then rows are deleted in dependency order (children before parents),
so every owned pipeline, credential and membership is handled, however
many there are.

    delete_issuer       reset linked credentials to self-asserted, drop issuer
    delete_user         remove everything that references the user
    remove_team_member  drop a membership, never leaving the user teamless
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from credtrust.core.errors import (
    AuthorizationError,
    NotFoundError,
    PreconditionError,
    as_result,
)
from credtrust.core.metrics import CASCADE_ROWS
from credtrust.models.activity import ActivityLog, ActivityType
from credtrust.models.principal import Principal
from credtrust.models.team import Team, TeamMembership
from credtrust.repos.unit_of_work import UnitOfWork, UnitOfWorkFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UserDeletionSummary:
    user_id: int
    activity_logs: int = 0
    pipelines: int = 0
    pipeline_entries: int = 0
    quiz_attempts: int = 0
    credentials_deleted: int = 0
    credentials_detached: int = 0
    issuer_deleted: bool = False
    memberships: int = 0
    teams_deleted: int = 0
    teams_rehomed: int = 0


def _require_admin(principal: Principal) -> None:
    if not principal.is_platform_admin():
        raise AuthorizationError("admin role required")


async def _detach_and_delete_issuer(uow: UnitOfWork, issuer_id: int, operation: str) -> int:
    linked = await uow.credentials.list_ids_by_issuer(issuer_id)
    detached = await uow.credentials.detach_issuer(issuer_id)
    if detached != len(linked):
        logger.warning(
            "Issuer %d: expected to reset %d credentials, reset %d",
            issuer_id,
            len(linked),
            detached,
        )
    await uow.issuers.delete(issuer_id)
    CASCADE_ROWS.labels(operation=operation, entity="credentials_detached").inc(detached)
    CASCADE_ROWS.labels(operation=operation, entity="issuers").inc()
    return detached


class CascadeCleanup:
    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow = uow_factory

    @as_result
    async def delete_issuer(self, issuer_id: int, principal: Principal) -> int:
        """Delete an issuer; returns how many credentials were reset."""
        _require_admin(principal)
        async with self._uow() as uow:
            issuer = await uow.issuers.get(issuer_id)
            if issuer is None:
                raise NotFoundError("issuer not found")
            detached = await _detach_and_delete_issuer(uow, issuer_id, "delete_issuer")

        logger.info(
            "Issuer %d deleted, %d credentials reset to unverified",
            issuer_id,
            detached,
            extra={"issuer_id": issuer_id},
        )
        return detached

    @as_result
    async def delete_user(self, user_id: int, principal: Principal) -> UserDeletionSummary:
        _require_admin(principal)
        if user_id == principal.user_id:
            raise PreconditionError(
                "admins cannot delete their own account", code="self_delete"
            )

        counts: dict[str, int | bool] = {}
        async with self._uow() as uow:
            user = await uow.users.get(user_id)
            if user is None:
                raise NotFoundError("user not found")

            counts["activity_logs"] = await uow.activity.delete_by_user(user_id)

            # Recruiter pipelines and everyone listed in them.
            pipeline_ids = await uow.pipelines.list_ids_by_recruiter(user_id)
            entries = await uow.pipeline_candidates.delete_by_pipelines(pipeline_ids)
            counts["pipelines"] = await uow.pipelines.delete_many(pipeline_ids)

            candidate = await uow.candidates.get_by_user(user_id)
            if candidate is not None:
                counts["quiz_attempts"] = await uow.quiz_attempts.delete_by_candidate(
                    candidate.id
                )
                # Other recruiters' pipelines may still list this candidate.
                entries += await uow.pipeline_candidates.delete_by_candidate(candidate.id)
                counts["credentials_deleted"] = await uow.credentials.delete_by_candidate(
                    candidate.id
                )
                await uow.candidates.delete(candidate.id)
            counts["pipeline_entries"] = entries

            issuer = await uow.issuers.get_by_owner(user_id)
            if issuer is not None:
                counts["credentials_detached"] = await _detach_and_delete_issuer(
                    uow, issuer.id, "delete_user"
                )
                counts["issuer_deleted"] = True

            counts["memberships"] = await uow.memberships.delete_by_user(user_id)

            deleted_teams, rehomed = await self._settle_created_teams(uow, user_id)
            counts["teams_deleted"] = deleted_teams
            counts["teams_rehomed"] = rehomed

            await uow.users.delete(user_id)

        summary = UserDeletionSummary(user_id=user_id, **counts)  # type: ignore[arg-type]
        for entity in (
            "activity_logs",
            "pipelines",
            "pipeline_entries",
            "quiz_attempts",
            "credentials_deleted",
            "memberships",
            "teams_deleted",
        ):
            CASCADE_ROWS.labels(operation="delete_user", entity=entity).inc(
                getattr(summary, entity)
            )
        logger.info("User %d deleted by admin=%d: %s", user_id, principal.user_id, summary)
        return summary

    async def _settle_created_teams(self, uow: UnitOfWork, user_id: int) -> tuple[int, int]:
        """Delete emptied teams the user created; hand the rest to a member."""
        empty: list[int] = []
        rehomed = 0
        for team in await uow.teams.list_created_by(user_id):
            members = await uow.memberships.list_by_team(team.id)
            if not members:
                empty.append(team.id)
                continue
            owners = [m for m in members if m.role == "owner"]
            heir = (owners or members)[0]
            await uow.teams.set_creator(team.id, heir.user_id)
            rehomed += 1
            logger.info("Team %d re-homed to user=%d", team.id, heir.user_id)

        await uow.activity.delete_by_teams(empty)
        deleted = await uow.teams.delete_many(empty)
        return deleted, rehomed

    @as_result
    async def remove_team_member(
        self, team_id: int, user_id: int, principal: Principal
    ) -> list[TeamMembership]:
        """Remove a member; returns the memberships the user holds afterwards."""
        async with self._uow() as uow:
            team = await uow.teams.get(team_id)
            if team is None:
                raise NotFoundError("team not found")
            if not principal.is_platform_admin():
                caller = await uow.memberships.get(team_id, principal.user_id)
                if caller is None or caller.role != "owner":
                    raise AuthorizationError("only team owners can remove members")

            if not await uow.memberships.remove(team_id, user_id):
                raise NotFoundError("member not found in this team")

            await self._ensure_personal_team(uow, user_id)
            await uow.activity.add(
                ActivityLog.new(
                    team_id=team_id,
                    user_id=principal.user_id,
                    action=ActivityType.REMOVE_TEAM_MEMBER,
                )
            )
            remaining = await uow.memberships.list_by_user(user_id)

        logger.info(
            "User %d removed from team=%d by user=%d",
            user_id,
            team_id,
            principal.user_id,
            extra={"team_id": team_id},
        )
        return remaining

    async def _ensure_personal_team(self, uow: UnitOfWork, user_id: int) -> None:
        created = await uow.teams.list_created_by(user_id)
        if created:
            personal = created[0]
            if await uow.memberships.get(personal.id, user_id) is None:
                await uow.memberships.add(
                    TeamMembership.new(team_id=personal.id, user_id=user_id, role="owner")
                )
            return

        if await uow.memberships.list_by_user(user_id):
            return

        user = await uow.users.get(user_id)
        name = f"{user.display_name}'s Team" if user else "Personal Team"
        personal = await uow.teams.add(Team.new(name=name, creator_user_id=user_id))
        await uow.memberships.add(
            TeamMembership.new(team_id=personal.id, user_id=user_id, role="owner")
        )
        await uow.activity.add(
            ActivityLog.new(
                team_id=personal.id, user_id=user_id, action=ActivityType.CREATE_TEAM
            )
        )
        logger.info("Created personal team=%d for user=%d", personal.id, user_id)
