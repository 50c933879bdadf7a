from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Candidate:
    id: int
    user_id: int
    bio: str = ""

    @staticmethod
    def new(*, user_id: int, bio: str = "") -> Candidate:
        return Candidate(id=0, user_id=user_id, bio=bio)


@dataclass(frozen=True, slots=True)
class QuizAttempt:
    """Skill-check attempt; grading happens elsewhere, only cleanup lives here."""

    id: int
    candidate_id: int
    quiz_id: int
    score: int | None = None
