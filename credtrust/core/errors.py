"""Error taxonomy and the Result type returned by lifecycle services.

Inside a service, failures are raised as LifecycleError subclasses so a
failing check aborts the surrounding unit of work (and rolls it back).  At
the service boundary the `as_result` decorator turns them into a Result:
callers branch on `result.ok` instead of catching exceptions.

    result = await coordinator.approve(credential_id, principal)
    if not result.ok:
        return {"error": result.error.message}

The HTTP layer maps `error.kind` (and, for not_found, `error.code`) to a
status code in one place: credtrust/api/results.py.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar, Generic, ParamSpec, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
P = ParamSpec("P")


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    PRECONDITION = "precondition"
    SERVICE = "service"
    PERSISTENCE = "persistence"


class LifecycleError(Exception):
    kind: ClassVar[ErrorKind]
    default_code: ClassVar[str]

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(LifecycleError):
    """Malformed input, rejected before any persistence."""

    kind = ErrorKind.VALIDATION
    default_code = "invalid_input"


class AuthorizationError(LifecycleError):
    """Wrong role or non-owner caller."""

    kind = ErrorKind.AUTHORIZATION
    default_code = "forbidden"


class PreconditionError(LifecycleError):
    """Domain state forbids the operation (missing DID, inactive issuer, ...)."""

    kind = ErrorKind.PRECONDITION
    default_code = "precondition_failed"


class AlreadyAssignedError(PreconditionError):
    default_code = "already_assigned"


class NotFoundError(PreconditionError):
    default_code = "not_found"


class ServiceError(LifecycleError):
    """External network or configuration failure, including timeouts."""

    kind = ErrorKind.SERVICE
    default_code = "service_unavailable"


class PersistenceError(LifecycleError):
    """The backing store aborted the transaction; nothing was committed."""

    kind = ErrorKind.PERSISTENCE
    default_code = "persistence_failed"


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    value: T | None = None
    error: LifecycleError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @staticmethod
    def success(value: T) -> Result[T]:
        return Result(value=value)

    @staticmethod
    def failure(error: LifecycleError) -> Result[T]:
        return Result(error=error)

    def unwrap(self) -> T:
        """Return the value, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def as_result(
    func: Callable[P, Awaitable[T]],
) -> Callable[P, Awaitable[Result[T]]]:
    """Decorator: run an async service operation and wrap its outcome."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T]:
        try:
            value = await func(*args, **kwargs)
        except LifecycleError as e:
            logger.warning(
                "%s rejected: %s",
                func.__qualname__,
                e.message,
                extra={"error_code": e.code},
            )
            return Result.failure(e)
        return Result.success(value)

    return wrapper
