"""PostgreSQL implementations of CandidateRepo and QuizAttemptRepo."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from credtrust.db.tables import CandidateRow, QuizAttemptRow
from credtrust.models.candidate import Candidate, QuizAttempt


class PgCandidateRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, candidate_id: int) -> Candidate | None:
        row = await self._session.get(CandidateRow, candidate_id)
        return None if row is None else _row_to_candidate(row)

    async def get_by_user(self, user_id: int) -> Candidate | None:
        stmt = select(CandidateRow).where(CandidateRow.user_id == user_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return None if row is None else _row_to_candidate(row)

    async def add(self, candidate: Candidate) -> Candidate:
        row = CandidateRow(user_id=candidate.user_id, bio=candidate.bio)
        self._session.add(row)
        await self._session.flush()
        return _row_to_candidate(row)

    async def delete(self, candidate_id: int) -> bool:
        result = await self._session.execute(
            delete(CandidateRow).where(CandidateRow.id == candidate_id)
        )
        return result.rowcount > 0


class PgQuizAttemptRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, attempt: QuizAttempt) -> QuizAttempt:
        row = QuizAttemptRow(
            candidate_id=attempt.candidate_id,
            quiz_id=attempt.quiz_id,
            score=attempt.score,
        )
        self._session.add(row)
        await self._session.flush()
        return _row_to_attempt(row)

    async def list_by_candidate(self, candidate_id: int) -> list[QuizAttempt]:
        stmt = select(QuizAttemptRow).where(QuizAttemptRow.candidate_id == candidate_id)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_attempt(r) for r in rows]

    async def delete_by_candidate(self, candidate_id: int) -> int:
        result = await self._session.execute(
            delete(QuizAttemptRow).where(QuizAttemptRow.candidate_id == candidate_id)
        )
        return result.rowcount


def _row_to_candidate(row: CandidateRow) -> Candidate:
    return Candidate(id=row.id, user_id=row.user_id, bio=row.bio or "")


def _row_to_attempt(row: QuizAttemptRow) -> QuizAttempt:
    return QuizAttempt(
        id=row.id, candidate_id=row.candidate_id, quiz_id=row.quiz_id, score=row.score
    )
