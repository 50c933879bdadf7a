from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum


class ActivityType(StrEnum):
    CREATE_DID = "CREATE_DID"
    REMOVE_TEAM_MEMBER = "REMOVE_TEAM_MEMBER"
    CREATE_TEAM = "CREATE_TEAM"


@dataclass(frozen=True, slots=True)
class ActivityLog:
    id: int
    team_id: int
    user_id: int | None
    action: ActivityType
    timestamp: datetime

    @staticmethod
    def new(*, team_id: int, user_id: int | None, action: ActivityType) -> ActivityLog:
        return ActivityLog(
            id=0,
            team_id=team_id,
            user_id=user_id,
            action=action,
            timestamp=datetime.now(UTC),
        )
