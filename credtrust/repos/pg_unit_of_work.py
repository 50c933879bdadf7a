"""SQLAlchemy unit of work: every repository shares one AsyncSession.

The session's transaction is the unit's transaction.  Clean exit commits;
an exception rolls back and propagates.  Driver and constraint failures
surface as PersistenceError so the services see a single error vocabulary
regardless of backend.
"""

from __future__ import annotations

import logging
from types import TracebackType

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from credtrust.core.errors import PersistenceError
from credtrust.repos.pg_activity_repo import PgActivityLogRepo
from credtrust.repos.pg_candidate_repo import PgCandidateRepo, PgQuizAttemptRepo
from credtrust.repos.pg_credential_store import PgCredentialStore
from credtrust.repos.pg_issuer_repo import PgIssuerRepo
from credtrust.repos.pg_pipeline_repo import PgPipelineCandidateRepo, PgPipelineRepo
from credtrust.repos.pg_platform_repo import PgPlatformSettingRepo
from credtrust.repos.pg_team_repo import PgTeamMembershipRepo, PgTeamRepo
from credtrust.repos.pg_user_repo import PgUserRepo

logger = logging.getLogger(__name__)


class PgUnitOfWork:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> PgUnitOfWork:
        session = self._session_factory()
        try:
            await session.begin()
        except SQLAlchemyError as exc:
            await session.close()
            raise PersistenceError("database unavailable") from exc
        self._session = session

        self.users = PgUserRepo(session)
        self.teams = PgTeamRepo(session)
        self.memberships = PgTeamMembershipRepo(session)
        self.candidates = PgCandidateRepo(session)
        self.quiz_attempts = PgQuizAttemptRepo(session)
        self.credentials = PgCredentialStore(session)
        self.issuers = PgIssuerRepo(session)
        self.pipelines = PgPipelineRepo(session)
        self.pipeline_candidates = PgPipelineCandidateRepo(session)
        self.activity = PgActivityLogRepo(session)
        self.platform = PgPlatformSettingRepo(session)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        session = self._session
        assert session is not None
        self._session = None
        try:
            if exc_type is None:
                try:
                    await session.commit()
                except SQLAlchemyError as commit_exc:
                    logger.error("Commit failed: %s", commit_exc)
                    await session.rollback()
                    raise PersistenceError("could not commit changes") from commit_exc
                return
            await session.rollback()
            if isinstance(exc, SQLAlchemyError):
                logger.error("Unit rolled back after database error: %s", exc)
                raise PersistenceError("database error") from exc
        finally:
            await session.close()
