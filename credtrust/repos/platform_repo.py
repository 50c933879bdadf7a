from __future__ import annotations

from typing import Protocol

PLATFORM_DID_KEY = "platform_did"


class PlatformSettingRepo(Protocol):
    """Key/value singletons owned by the platform itself (e.g. its DID)."""

    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str) -> None: ...


class InMemoryPlatformSettingRepo:
    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def snapshot(self) -> dict[str, str]:
        return dict(self._values)

    def restore(self, state: dict[str, str]) -> None:
        self._values = dict(state)

    def clear(self) -> None:
        self._values.clear()
