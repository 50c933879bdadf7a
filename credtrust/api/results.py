"""Translate service Results into HTTP responses.

Routers call `unwrap(result)`: the value on success, otherwise the carried
LifecycleError is raised and `lifecycle_error_handler` (registered in
main.py) renders it as `{"detail": message, "code": code}`.

    kind            status
    --------------  ------
    validation      422
    authorization   403
    precondition    409   (404 when code == "not_found")
    service         502
    persistence     503
"""

from __future__ import annotations

import logging
from typing import TypeVar

from fastapi import Request
from fastapi.responses import JSONResponse

from credtrust.core.errors import ErrorKind, LifecycleError, NotFoundError, Result

logger = logging.getLogger(__name__)

T = TypeVar("T")

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.PRECONDITION: 409,
    ErrorKind.SERVICE: 502,
    ErrorKind.PERSISTENCE: 503,
}


def status_for(error: LifecycleError) -> int:
    if isinstance(error, NotFoundError):
        return 404
    return STATUS_BY_KIND[error.kind]


def unwrap(result: Result[T]) -> T:
    return result.unwrap()


async def lifecycle_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, LifecycleError)
    code = status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=code,
        content={"detail": exc.message, "code": exc.code},
    )
