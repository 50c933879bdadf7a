"""Liveness endpoint with per-dependency status.

Returns 200 even when degraded; the `status` field carries the actual
health.  A 503 here would make an orchestrator restart the container,
which is too aggressive for a database blip.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from credtrust.db.engine import engine
from credtrust.services.issuance_gateway import CheqdIssuanceGateway, issuance_gateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    checks: dict[str, str] = {}
    overall = "ok"

    if engine is not None:
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except SQLAlchemyError as e:
            logger.warning("Health check: database unreachable: %s", e)
            checks["database"] = "degraded"
            overall = "degraded"
    else:
        checks["database"] = "in_memory"

    checks["issuance"] = (
        "cheqd" if isinstance(issuance_gateway, CheqdIssuanceGateway) else "in_memory"
    )

    return {"status": overall, "checks": checks}
