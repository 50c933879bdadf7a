"""Unit of work: one transactional scope spanning every repository.

Each lifecycle transition and each cascade runs inside exactly one unit:

    async with uow_factory() as uow:
        cred = await uow.credentials.get_for_update(credential_id)
        ...
        await uow.credentials.update_status(...)

Clean exit commits, any exception rolls back, so a check that raises
halfway through a cascade leaves no partial writes behind.

Two implementations share the UnitOfWork protocol:
  - PgUnitOfWork (pg_unit_of_work.py): one SQLAlchemy AsyncSession transaction.
  - InMemoryUnitOfWork (below): serializes units with an asyncio.Lock and
    restores a snapshot of every table on rollback.  Used when no
    DATABASE_URL is configured, and in tests.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from types import TracebackType
from typing import Protocol

from credtrust.repos.activity_repo import ActivityLogRepo, InMemoryActivityLogRepo
from credtrust.repos.candidate_repo import (
    CandidateRepo,
    InMemoryCandidateRepo,
    InMemoryQuizAttemptRepo,
    QuizAttemptRepo,
)
from credtrust.repos.credential_store import CredentialStore, InMemoryCredentialStore
from credtrust.repos.issuer_repo import InMemoryIssuerRepo, IssuerRepo
from credtrust.repos.pipeline_repo import (
    InMemoryPipelineCandidateRepo,
    InMemoryPipelineRepo,
    PipelineCandidateRepo,
    PipelineRepo,
)
from credtrust.repos.platform_repo import (
    InMemoryPlatformSettingRepo,
    PlatformSettingRepo,
)
from credtrust.repos.team_repo import (
    InMemoryTeamMembershipRepo,
    InMemoryTeamRepo,
    TeamMembershipRepo,
    TeamRepo,
)
from credtrust.repos.user_repo import InMemoryUserRepo, UserRepo

logger = logging.getLogger(__name__)


class UnitOfWork(Protocol):
    users: UserRepo
    teams: TeamRepo
    memberships: TeamMembershipRepo
    candidates: CandidateRepo
    quiz_attempts: QuizAttemptRepo
    credentials: CredentialStore
    issuers: IssuerRepo
    pipelines: PipelineRepo
    pipeline_candidates: PipelineCandidateRepo
    activity: ActivityLogRepo
    platform: PlatformSettingRepo

    async def __aenter__(self) -> UnitOfWork: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...


UnitOfWorkFactory = Callable[[], UnitOfWork]


class InMemoryDatabase:
    """All in-memory tables plus the lock that serializes units over them."""

    _TABLES = (
        "users",
        "teams",
        "memberships",
        "candidates",
        "quiz_attempts",
        "credentials",
        "issuers",
        "pipelines",
        "pipeline_candidates",
        "activity",
        "platform",
    )

    def __init__(self) -> None:
        self.users = InMemoryUserRepo()
        self.teams = InMemoryTeamRepo()
        self.memberships = InMemoryTeamMembershipRepo()
        self.candidates = InMemoryCandidateRepo()
        self.quiz_attempts = InMemoryQuizAttemptRepo()
        self.credentials = InMemoryCredentialStore()
        self.issuers = InMemoryIssuerRepo()
        self.pipelines = InMemoryPipelineRepo()
        self.pipeline_candidates = InMemoryPipelineCandidateRepo()
        self.activity = InMemoryActivityLogRepo()
        self.platform = InMemoryPlatformSettingRepo()
        self.lock = asyncio.Lock()

    def snapshot(self) -> dict[str, object]:
        return {name: getattr(self, name).snapshot() for name in self._TABLES}

    def restore(self, state: dict[str, object]) -> None:
        for name in self._TABLES:
            getattr(self, name).restore(state[name])

    def clear(self) -> None:
        for name in self._TABLES:
            getattr(self, name).clear()
        # A fresh lock, since the old one may be bound to a closed event loop.
        self.lock = asyncio.Lock()


class InMemoryUnitOfWork:
    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db
        self._snapshot: dict[str, object] | None = None

        self.users = db.users
        self.teams = db.teams
        self.memberships = db.memberships
        self.candidates = db.candidates
        self.quiz_attempts = db.quiz_attempts
        self.credentials = db.credentials
        self.issuers = db.issuers
        self.pipelines = db.pipelines
        self.pipeline_candidates = db.pipeline_candidates
        self.activity = db.activity
        self.platform = db.platform

    async def __aenter__(self) -> InMemoryUnitOfWork:
        await self._db.lock.acquire()
        self._snapshot = self._db.snapshot()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            if exc_type is not None and self._snapshot is not None:
                self._db.restore(self._snapshot)
                logger.debug("In-memory unit rolled back after %s", exc_type.__name__)
        finally:
            self._snapshot = None
            self._db.lock.release()
