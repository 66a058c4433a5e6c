"""Runtime settings read from environment variables.

Environment Variables
---------------------
- ``TRIPS_API_URL``: dataset endpoint (default: Chicago ``wrvz-psew`` JSON).
- ``TRIPS_PAGE_SIZE``: rows per request (default: ``100``).
- ``INGEST_TIMEOUT_SECONDS``: wall-clock budget for one run (default: ``600``).
- ``INGEST_MAX_RETRIES``: attempts per page request (default: ``1``, no retry).
- ``INGEST_PERSIST``: insert pages into ClickHouse (default: ``false``).
- ``INGEST_STRICT``: abort a page on the first bad trip (default: ``true``).
- ``CLICKHOUSE_HOST``, ``CLICKHOUSE_PORT``, ``CLICKHOUSE_USER``,
  ``CLICKHOUSE_PASSWORD``, ``CLICKHOUSE_DB``: connection settings.
- ``TRIPS_TABLE``: target table (default: ``taxi_trips``).
- ``LOG_LEVEL``: loguru level (default: ``INFO``).
"""
import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BASE_URL = "https://data.cityofchicago.org/resource/wrvz-psew.json"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    page_size: int = 100
    timeout_seconds: float = 600.0
    max_retries: int = 1
    persist: bool = False
    strict: bool = True
    clickhouse_host: str = ""
    clickhouse_port: int = 19000
    clickhouse_user: str = ""
    clickhouse_password: str = ""
    clickhouse_db: str = ""
    table: str = "taxi_trips"
    log_level: str = "INFO"

    @property
    def clickhouse_con(self) -> dict:
        """Connection kwargs for :class:`clickhouse_driver.Client`."""
        return {
            "host": self.clickhouse_host,
            "port": self.clickhouse_port,
            "user": self.clickhouse_user,
            "password": self.clickhouse_password,
            "database": self.clickhouse_db,
        }


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "")
    if raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "")
    if raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name, "").strip().lower()
    if raw == "":
        return default
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from ``env`` (``os.environ`` by default).

    Raises
    ------
    ValueError
        If a numeric or boolean variable cannot be parsed.
    """
    env = os.environ if env is None else env
    return Settings(
        base_url=env.get("TRIPS_API_URL") or DEFAULT_BASE_URL,
        page_size=_get_int(env, "TRIPS_PAGE_SIZE", 100),
        timeout_seconds=_get_float(env, "INGEST_TIMEOUT_SECONDS", 600.0),
        max_retries=_get_int(env, "INGEST_MAX_RETRIES", 1),
        persist=_get_bool(env, "INGEST_PERSIST", False),
        strict=_get_bool(env, "INGEST_STRICT", True),
        clickhouse_host=env.get("CLICKHOUSE_HOST", ""),
        clickhouse_port=_get_int(env, "CLICKHOUSE_PORT", 19000),
        clickhouse_user=env.get("CLICKHOUSE_USER", ""),
        clickhouse_password=env.get("CLICKHOUSE_PASSWORD", ""),
        clickhouse_db=env.get("CLICKHOUSE_DB", ""),
        table=env.get("TRIPS_TABLE") or "taxi_trips",
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
    )
