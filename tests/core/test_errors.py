from __future__ import annotations

import asyncio

import pytest

from credtrust.core.errors import (
    AlreadyAssignedError,
    ErrorKind,
    NotFoundError,
    PreconditionError,
    Result,
    ServiceError,
    ValidationError,
    as_result,
)


def test_errors_carry_kind_and_default_code() -> None:
    assert ValidationError("bad").kind == ErrorKind.VALIDATION
    assert ValidationError("bad").code == "invalid_input"
    assert ServiceError("down", code="issuance_timeout").code == "issuance_timeout"


def test_not_found_and_already_assigned_are_preconditions() -> None:
    assert isinstance(NotFoundError("x"), PreconditionError)
    assert NotFoundError("x").kind == ErrorKind.PRECONDITION
    assert AlreadyAssignedError("x").code == "already_assigned"


def test_result_unwrap() -> None:
    assert Result.success(5).unwrap() == 5

    failed: Result[int] = Result.failure(ValidationError("bad"))
    assert failed.ok is False
    with pytest.raises(ValidationError):
        failed.unwrap()


def test_as_result_wraps_lifecycle_errors_only() -> None:
    @as_result
    async def succeed() -> int:
        return 1

    @as_result
    async def refuse() -> int:
        raise PreconditionError("nope", code="nope")

    @as_result
    async def crash() -> int:
        raise RuntimeError("bug")

    assert asyncio.run(succeed()) == Result.success(1)
    refused = asyncio.run(refuse())
    assert refused.error is not None and refused.error.code == "nope"
    # Programming errors are not domain failures and still propagate.
    with pytest.raises(RuntimeError):
        asyncio.run(crash())
