from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime


@dataclass(frozen=True, slots=True)
class Team:
    id: int
    name: str
    creator_user_id: int  # the user whose personal team this is
    did: str | None = None

    @staticmethod
    def new(*, name: str, creator_user_id: int) -> Team:
        return Team(id=0, name=name, creator_user_id=creator_user_id)


@dataclass(frozen=True, slots=True)
class TeamMembership:
    id: int
    team_id: int
    user_id: int
    role: str  # owner|member
    joined_at: datetime

    @staticmethod
    def new(*, team_id: int, user_id: int, role: str = "member") -> TeamMembership:
        return TeamMembership(
            id=0,
            team_id=team_id,
            user_id=user_id,
            role=role,
            joined_at=datetime.now(UTC),
        )
