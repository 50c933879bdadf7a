from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Pipeline:
    """Recruiter-controlled hiring pipeline (e.g. "Backend Engineer May 2025")."""

    id: int
    recruiter_id: int
    name: str
    description: str | None = None

    @staticmethod
    def new(*, recruiter_id: int, name: str, description: str | None = None) -> Pipeline:
        return Pipeline(id=0, recruiter_id=recruiter_id, name=name, description=description)


@dataclass(frozen=True, slots=True)
class PipelineCandidate:
    id: int
    pipeline_id: int
    candidate_id: int
    stage: str = "sourced"  # sourced|screening|interview|offer|hired|rejected
    notes: str | None = None
