"""Shared plumbing for the in-memory repositories.

Every in-memory repo keeps its rows in a dict keyed by id and hands out
sequential integer ids, the way a serial primary key would.  Keeping the
state in one shape lets InMemoryUnitOfWork snapshot and restore all tables
at once when a unit rolls back.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Generic, TypeVar

M = TypeVar("M")


class InMemoryTable(Generic[M]):
    def __init__(self) -> None:
        self._rows: dict[int, M] = {}
        self._next_id = 1

    def _insert(self, entity: M) -> M:
        stored = replace(entity, id=self._next_id)  # type: ignore[type-var]
        self._rows[self._next_id] = stored
        self._next_id += 1
        return stored

    def snapshot(self) -> tuple[dict[int, Any], int]:
        # Rows are frozen dataclasses, so a shallow copy is a full snapshot.
        return dict(self._rows), self._next_id

    def restore(self, state: tuple[dict[int, Any], int]) -> None:
        rows, next_id = state
        self._rows = dict(rows)
        self._next_id = next_id

    def clear(self) -> None:
        self._rows.clear()
        self._next_id = 1
