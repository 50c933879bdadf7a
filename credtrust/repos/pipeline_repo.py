from __future__ import annotations

from typing import Protocol

from credtrust.models.pipeline import Pipeline, PipelineCandidate
from credtrust.repos.memory import InMemoryTable


class PipelineRepo(Protocol):
    async def add(self, pipeline: Pipeline) -> Pipeline: ...
    async def get(self, pipeline_id: int) -> Pipeline | None: ...
    async def list_ids_by_recruiter(self, recruiter_id: int) -> list[int]: ...
    async def delete_many(self, pipeline_ids: list[int]) -> int: ...


class PipelineCandidateRepo(Protocol):
    async def add(self, entry: PipelineCandidate) -> PipelineCandidate: ...
    async def list_by_pipeline(self, pipeline_id: int) -> list[PipelineCandidate]: ...
    async def delete_by_pipelines(self, pipeline_ids: list[int]) -> int: ...
    async def delete_by_candidate(self, candidate_id: int) -> int: ...


class InMemoryPipelineRepo(InMemoryTable[Pipeline]):
    async def add(self, pipeline: Pipeline) -> Pipeline:
        return self._insert(pipeline)

    async def get(self, pipeline_id: int) -> Pipeline | None:
        return self._rows.get(pipeline_id)

    async def list_ids_by_recruiter(self, recruiter_id: int) -> list[int]:
        return sorted(
            p.id for p in self._rows.values() if p.recruiter_id == recruiter_id
        )

    async def delete_many(self, pipeline_ids: list[int]) -> int:
        return sum(self._rows.pop(pid, None) is not None for pid in pipeline_ids)


class InMemoryPipelineCandidateRepo(InMemoryTable[PipelineCandidate]):
    async def add(self, entry: PipelineCandidate) -> PipelineCandidate:
        return self._insert(entry)

    async def list_by_pipeline(self, pipeline_id: int) -> list[PipelineCandidate]:
        return [e for e in self._rows.values() if e.pipeline_id == pipeline_id]

    async def delete_by_pipelines(self, pipeline_ids: list[int]) -> int:
        wanted = set(pipeline_ids)
        return self._delete_where(lambda e: e.pipeline_id in wanted)

    async def delete_by_candidate(self, candidate_id: int) -> int:
        return self._delete_where(lambda e: e.candidate_id == candidate_id)

    def _delete_where(self, predicate) -> int:
        doomed = [e.id for e in self._rows.values() if predicate(e)]
        for eid in doomed:
            del self._rows[eid]
        return len(doomed)
