"""PostgreSQL implementations of PipelineRepo and PipelineCandidateRepo."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from credtrust.db.tables import PipelineCandidateRow, PipelineRow
from credtrust.models.pipeline import Pipeline, PipelineCandidate


class PgPipelineRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, pipeline: Pipeline) -> Pipeline:
        row = PipelineRow(
            recruiter_id=pipeline.recruiter_id,
            name=pipeline.name,
            description=pipeline.description,
        )
        self._session.add(row)
        await self._session.flush()
        return _row_to_pipeline(row)

    async def get(self, pipeline_id: int) -> Pipeline | None:
        row = await self._session.get(PipelineRow, pipeline_id)
        return None if row is None else _row_to_pipeline(row)

    async def list_ids_by_recruiter(self, recruiter_id: int) -> list[int]:
        stmt = (
            select(PipelineRow.id)
            .where(PipelineRow.recruiter_id == recruiter_id)
            .order_by(PipelineRow.id)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete_many(self, pipeline_ids: list[int]) -> int:
        if not pipeline_ids:
            return 0
        result = await self._session.execute(
            delete(PipelineRow)
            .where(PipelineRow.id.in_(pipeline_ids))
        )
        return result.rowcount


class PgPipelineCandidateRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, entry: PipelineCandidate) -> PipelineCandidate:
        row = PipelineCandidateRow(
            pipeline_id=entry.pipeline_id,
            candidate_id=entry.candidate_id,
            stage=entry.stage,
            notes=entry.notes,
        )
        self._session.add(row)
        await self._session.flush()
        return _row_to_entry(row)

    async def list_by_pipeline(self, pipeline_id: int) -> list[PipelineCandidate]:
        stmt = (
            select(PipelineCandidateRow)
            .where(PipelineCandidateRow.pipeline_id == pipeline_id)
            .order_by(PipelineCandidateRow.id)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_entry(r) for r in rows]

    async def delete_by_pipelines(self, pipeline_ids: list[int]) -> int:
        if not pipeline_ids:
            return 0
        result = await self._session.execute(
            delete(PipelineCandidateRow)
            .where(PipelineCandidateRow.pipeline_id.in_(pipeline_ids))
        )
        return result.rowcount

    async def delete_by_candidate(self, candidate_id: int) -> int:
        result = await self._session.execute(
            delete(PipelineCandidateRow)
            .where(PipelineCandidateRow.candidate_id == candidate_id)
        )
        return result.rowcount


def _row_to_pipeline(row: PipelineRow) -> Pipeline:
    return Pipeline(
        id=row.id,
        recruiter_id=row.recruiter_id,
        name=row.name,
        description=row.description,
    )


def _row_to_entry(row: PipelineCandidateRow) -> PipelineCandidate:
    return PipelineCandidate(
        id=row.id,
        pipeline_id=row.pipeline_id,
        candidate_id=row.candidate_id,
        stage=row.stage,
        notes=row.notes,
    )
