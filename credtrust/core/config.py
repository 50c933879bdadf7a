from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    cheqd_api_url: str
    cheqd_api_key: str | None
    cheqd_network: str
    issuance_timeout_seconds: float
    jwt_public_key: str | None

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    @property
    def issuance_configured(self) -> bool:
        """True when calls should go to the real cheqd network."""
        return self.is_prod or self.cheqd_api_key is not None


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    log_json_raw = _getenv("LOG_JSON", "false").lower()
    port_raw = _getenv("PORT", "8000")
    timeout_raw = _getenv("ISSUANCE_TIMEOUT_SECONDS", "10")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    if log_json_raw not in ("true", "false", "1", "0"):
        raise ValueError(f"LOG_JSON must be true|false (got {log_json_raw!r})")

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    try:
        issuance_timeout = float(timeout_raw)
    except ValueError:
        raise ValueError(
            f"ISSUANCE_TIMEOUT_SECONDS must be a number (got {timeout_raw!r})"
        ) from None
    if issuance_timeout <= 0:
        raise ValueError(
            f"ISSUANCE_TIMEOUT_SECONDS must be positive (got {timeout_raw!r})"
        )

    database_url = _getenv("DATABASE_URL", "") or None
    cheqd_api_key = _getenv("CHEQD_API_KEY", "") or None
    # Single-line env values carry the PEM with literal \n escapes.
    jwt_public_key = _getenv("JWT_PUBLIC_KEY", "").replace("\\n", "\n") or None
    if jwt_public_key is None and app_env_raw == "prod":
        raise ValueError("JWT_PUBLIC_KEY is required when APP_ENV=prod")
    if jwt_public_key is not None and not jwt_public_key.startswith(
        "-----BEGIN PUBLIC KEY-----"
    ):
        raise ValueError("JWT_PUBLIC_KEY must be a PEM encoded public key")

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json_raw in ("true", "1"),
        port=port,
        database_url=database_url,
        cheqd_api_url=_getenv("CHEQD_API_URL", "https://studio.cheqd.io"),
        cheqd_api_key=cheqd_api_key,
        cheqd_network=_getenv("CHEQD_NETWORK", "testnet"),
        issuance_timeout_seconds=issuance_timeout,
        jwt_public_key=jwt_public_key,
    )


# Optional: module-level singleton so imports are cheap
SETTINGS = load_settings()
