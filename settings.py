from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_DB_PATH_ENV = "SENSOR_DB_PATH"
_DEFAULT_LIMIT_ENV = "READINGS_DEFAULT_LIMIT"
_MAX_LIMIT_ENV = "READINGS_MAX_LIMIT"
_HOST_ENV = "API_HOST"
_PORT_ENV = "API_PORT"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    database_path: str
    readings_default_limit: int
    readings_max_limit: int
    api_host: str
    api_port: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    default_limit = _read_positive_int_env(_DEFAULT_LIMIT_ENV, 100)
    max_limit = _read_positive_int_env(_MAX_LIMIT_ENV, 1000)
    return Settings(
        database_path=_read_str_env(_DB_PATH_ENV, "./tmp/iot_sensors.db"),
        readings_default_limit=min(default_limit, max_limit),
        readings_max_limit=max_limit,
        api_host=_read_str_env(_HOST_ENV, "0.0.0.0"),
        api_port=_read_positive_int_env(_PORT_ENV, 8080),
        log_level=_read_log_level("INFO"),
    )
