"""Application configuration helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    database_path: Path = Field(
        default=Path("./data/cartsense.db"),
        description="SQLite database backing the remote document store (server side).",
    )
    offline_database_path: Path = Field(
        default=Path("./data/cartsense-offline.db"),
        description="SQLite database holding the local cache and pending-operation queue.",
    )
    offline_storage_enabled: bool = Field(
        default=True,
        description="Disable to run without a local durable cache (remote-only mode).",
    )
    user_id: Optional[str] = Field(
        default=None,
        description="Account whose shopping list and saved meals are replicated locally.",
    )
    remote_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the CartSense document store API.",
    )
    remote_timeout: Optional[float] = Field(
        default=None,
        description="Per-request timeout for remote calls; unset keeps the httpx default.",
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer token required for authenticated endpoints.",
    )
    server_host: str = Field(default="127.0.0.1", description="Interface the document API binds to.")
    server_port: int = Field(default=8000, ge=1, le=65535, description="Port the document API listens on.")
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    log_requests: bool = Field(
        default=True,
        description="Emit request access logs when true.",
    )
    connectivity_check_interval: float = Field(
        default=15.0,
        description="Seconds between connectivity probes in the sync runner.",
    )
    sync_retry_base_delay: float = Field(
        default=5.0,
        description="Initial delay before retrying a drain that left failed operations.",
    )
    sync_retry_max_delay: float = Field(
        default=300.0,
        description="Upper bound for the exponential drain retry delay.",
    )

    model_config = ConfigDict(frozen=True)


def _coerce_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_env_file(path: Path) -> dict[str, str]:
    payload: dict[str, str] = {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, raw_value = line.split("=", 1)
                payload[key.strip()] = raw_value.strip()
    except FileNotFoundError:
        return {}
    return payload


def _load_env_file_values() -> dict[str, str]:
    values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        values.update(_parse_env_file(candidate))
    return values


def _load_from_env() -> dict[str, object]:
    """Load optional overrides from env vars (with .env fallbacks)."""

    file_values = _load_env_file_values()

    def _env(key: str) -> Optional[str]:
        return os.environ.get(key) or file_values.get(key)

    payload: dict[str, object] = {}
    if (db_path := _env("CARTSENSE_DATABASE_PATH")):
        payload["database_path"] = Path(db_path)
    if (offline_path := _env("CARTSENSE_OFFLINE_DATABASE_PATH")):
        payload["offline_database_path"] = Path(offline_path)
    if (offline_enabled := _env("CARTSENSE_OFFLINE_STORAGE_ENABLED")):
        payload["offline_storage_enabled"] = _coerce_bool(offline_enabled)
    if (user_id := _env("CARTSENSE_USER_ID")):
        payload["user_id"] = user_id
    if (remote_url := _env("CARTSENSE_REMOTE_BASE_URL")):
        payload["remote_base_url"] = remote_url.rstrip("/")
    if (remote_timeout := _env("CARTSENSE_REMOTE_TIMEOUT")):
        try:
            payload["remote_timeout"] = float(remote_timeout)
        except ValueError:
            pass
    if (api_token := _env("CARTSENSE_API_TOKEN")):
        payload["api_token"] = api_token
    if (server_host := _env("CARTSENSE_SERVER_HOST")):
        payload["server_host"] = server_host
    if (server_port := _env("CARTSENSE_SERVER_PORT")):
        try:
            payload["server_port"] = int(server_port)
        except ValueError:
            pass
    if (log_level := _env("CARTSENSE_LOG_LEVEL")):
        payload["log_level"] = log_level
    if (log_format := _env("CARTSENSE_LOG_FORMAT")):
        payload["log_format"] = log_format
    if (log_requests := _env("CARTSENSE_LOG_REQUESTS")):
        payload["log_requests"] = _coerce_bool(log_requests)
    if (check_interval := _env("CARTSENSE_CONNECTIVITY_CHECK_INTERVAL")):
        try:
            payload["connectivity_check_interval"] = float(check_interval)
        except ValueError:
            pass
    if (base_delay := _env("CARTSENSE_SYNC_RETRY_BASE_DELAY")):
        try:
            payload["sync_retry_base_delay"] = float(base_delay)
        except ValueError:
            pass
    if (max_delay := _env("CARTSENSE_SYNC_RETRY_MAX_DELAY")):
        try:
            payload["sync_retry_max_delay"] = float(max_delay)
        except ValueError:
            pass
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())
