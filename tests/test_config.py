"""
Tests for environment-driven settings.
"""
import pytest

from chicago_taxi_trips.config import DEFAULT_BASE_URL, load_settings


def test_defaults() -> None:
    settings = load_settings({})

    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.page_size == 100
    assert settings.timeout_seconds == 600.0
    assert settings.max_retries == 1
    assert settings.persist is False
    assert settings.strict is True
    assert settings.table == "taxi_trips"
    assert settings.clickhouse_con == {
        "host": "",
        "port": 19000,
        "user": "",
        "password": "",
        "database": "",
    }


def test_overrides() -> None:
    settings = load_settings({
        "TRIPS_API_URL": "https://example.test/trips.json",
        "TRIPS_PAGE_SIZE": "500",
        "INGEST_TIMEOUT_SECONDS": "30.5",
        "INGEST_MAX_RETRIES": "3",
        "INGEST_PERSIST": "yes",
        "INGEST_STRICT": "False",
        "CLICKHOUSE_HOST": "ch-router",
        "CLICKHOUSE_PORT": "9000",
        "CLICKHOUSE_DB": "chicago",
        "LOG_LEVEL": "debug",
    })

    assert settings.base_url == "https://example.test/trips.json"
    assert settings.page_size == 500
    assert settings.timeout_seconds == 30.5
    assert settings.max_retries == 3
    assert settings.persist is True
    assert settings.strict is False
    assert settings.clickhouse_con["host"] == "ch-router"
    assert settings.clickhouse_con["port"] == 9000
    assert settings.clickhouse_con["database"] == "chicago"
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "env, name",
    [
        ({"TRIPS_PAGE_SIZE": "lots"}, "TRIPS_PAGE_SIZE"),
        ({"TRIPS_PAGE_SIZE": "0"}, "TRIPS_PAGE_SIZE"),
        ({"INGEST_TIMEOUT_SECONDS": "-1"}, "INGEST_TIMEOUT_SECONDS"),
        ({"INGEST_PERSIST": "maybe"}, "INGEST_PERSIST"),
    ],
)
def test_invalid_values_name_the_variable(env, name) -> None:
    with pytest.raises(ValueError, match=name):
        load_settings(env)


def test_reads_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("TRIPS_TABLE", "trips_v2")

    assert load_settings().table == "trips_v2"
