from __future__ import annotations

from typing import Protocol

from credtrust.models.candidate import Candidate, QuizAttempt
from credtrust.repos.memory import InMemoryTable


class CandidateRepo(Protocol):
    async def get(self, candidate_id: int) -> Candidate | None: ...
    async def get_by_user(self, user_id: int) -> Candidate | None: ...
    async def add(self, candidate: Candidate) -> Candidate: ...
    async def delete(self, candidate_id: int) -> bool: ...


class QuizAttemptRepo(Protocol):
    async def add(self, attempt: QuizAttempt) -> QuizAttempt: ...
    async def list_by_candidate(self, candidate_id: int) -> list[QuizAttempt]: ...
    async def delete_by_candidate(self, candidate_id: int) -> int: ...


class InMemoryCandidateRepo(InMemoryTable[Candidate]):
    async def get(self, candidate_id: int) -> Candidate | None:
        return self._rows.get(candidate_id)

    async def get_by_user(self, user_id: int) -> Candidate | None:
        return next((c for c in self._rows.values() if c.user_id == user_id), None)

    async def add(self, candidate: Candidate) -> Candidate:
        if await self.get_by_user(candidate.user_id) is not None:
            raise ValueError("candidate profile already exists")
        return self._insert(candidate)

    async def delete(self, candidate_id: int) -> bool:
        return self._rows.pop(candidate_id, None) is not None


class InMemoryQuizAttemptRepo(InMemoryTable[QuizAttempt]):
    async def add(self, attempt: QuizAttempt) -> QuizAttempt:
        return self._insert(attempt)

    async def list_by_candidate(self, candidate_id: int) -> list[QuizAttempt]:
        return [a for a in self._rows.values() if a.candidate_id == candidate_id]

    async def delete_by_candidate(self, candidate_id: int) -> int:
        doomed = [a.id for a in self._rows.values() if a.candidate_id == candidate_id]
        for aid in doomed:
            del self._rows[aid]
        return len(doomed)
