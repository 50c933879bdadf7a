from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class CredentialCategory(StrEnum):
    EDUCATION = "EDUCATION"
    EXPERIENCE = "EXPERIENCE"
    PROJECT = "PROJECT"
    AWARD = "AWARD"
    CERTIFICATION = "CERTIFICATION"
    OTHER = "OTHER"


class CredentialStatus(StrEnum):
    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class Credential:
    """A single claim owned by a candidate.

    `verified` is a cache of `status == VERIFIED` kept for cheap filtering;
    the two can never disagree, so construction fails if they do.  Code that
    changes status goes through CredentialStore.update_status, which derives
    `verified` itself.
    """

    id: int
    candidate_id: int
    category: CredentialCategory
    title: str
    sub_type: str  # fine-grained type, e.g. "bachelor", "github_repo"
    status: CredentialStatus
    verified: bool = False
    issuer_id: int | None = None  # None means self-asserted
    file_url: str | None = None
    vc_payload: dict[str, Any] | None = None
    verified_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.verified != (self.status == CredentialStatus.VERIFIED):
            raise ValueError(
                f"verified={self.verified} disagrees with status={self.status}"
            )

    @staticmethod
    def new(
        *,
        candidate_id: int,
        category: CredentialCategory,
        title: str,
        sub_type: str,
        file_url: str | None = None,
        issuer_id: int | None = None,
    ) -> Credential:
        # Naming an issuer asks for review; otherwise the claim is self-asserted.
        status = (
            CredentialStatus.PENDING
            if issuer_id is not None
            else CredentialStatus.UNVERIFIED
        )
        return Credential(
            id=0,
            candidate_id=candidate_id,
            category=category,
            title=title,
            sub_type=sub_type,
            status=status,
            issuer_id=issuer_id,
            file_url=file_url,
        )

    @property
    def has_vc(self) -> bool:
        return self.vc_payload is not None


@dataclass(frozen=True, slots=True)
class StatusCounts:
    verified: int = 0
    pending: int = 0
    rejected: int = 0
    unverified: int = 0


@dataclass(frozen=True, slots=True)
class CredentialQuery:
    """Paging, sorting and filtering for credential listings."""

    page: int = 1
    page_size: int = 10
    sort: str = "created_at"  # title|category|status|created_at
    order: str = "desc"  # asc|desc
    search: str = ""
    status: CredentialStatus | None = None

    SORT_FIELDS = ("title", "category", "status", "created_at")

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if not 1 <= self.page_size <= 100:
            raise ValueError("page_size must be between 1 and 100")
        if self.sort not in self.SORT_FIELDS:
            raise ValueError(f"sort must be one of {'|'.join(self.SORT_FIELDS)}")
        if self.order not in ("asc", "desc"):
            raise ValueError("order must be asc|desc")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True, slots=True)
class CredentialPage:
    rows: list[Credential]
    has_next: bool
    status_counts: StatusCounts = StatusCounts()
