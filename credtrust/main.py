from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from credtrust.api.admin import router as admin_router
from credtrust.api.credentials import router as credentials_router
from credtrust.api.health import router as health_router
from credtrust.api.issuers import router as issuers_router
from credtrust.api.metrics_endpoint import router as metrics_router
from credtrust.api.results import lifecycle_error_handler
from credtrust.api.teams import router as teams_router
from credtrust.core.config import SETTINGS
from credtrust.core.errors import LifecycleError
from credtrust.core.logging import setup_logging
from credtrust.db.engine import lifespan_db
from credtrust.middleware.metrics import MetricsMiddleware
from credtrust.middleware.request_context import RequestContextMiddleware

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    async with lifespan_db():
        yield


app = FastAPI(
    title="credtrust",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_exception_handler(LifecycleError, lifecycle_error_handler)

# Last-added runs first: RequestContext (outermost) -> Metrics -> route.
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestContextMiddleware)

app.include_router(metrics_router)
app.include_router(health_router)
app.include_router(credentials_router)
app.include_router(teams_router)
app.include_router(issuers_router)
app.include_router(admin_router)

logger.info(
    "credtrust started  env=%s log_level=%s port=%d issuance=%s storage=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "cheqd" if SETTINGS.issuance_configured else "in_memory",
    "postgres" if SETTINGS.database_url else "in_memory",
)
