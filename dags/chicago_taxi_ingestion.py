"""
Chicago Taxi Trips Ingestion DAG
================================

This DAG walks the City of Chicago taxi trips dataset page by page, renders
every page to the task log and, when enabled, inserts it into ClickHouse.
Each run is bounded by a wall-clock deadline after which the ingestion stops
gracefully.

Prerequisites
-------------
- ClickHouse reachable (e.g., via HAProxy router).
- Outbound HTTPS to ``data.cityofchicago.org``.

Environment Variables
---------------------
- ``CLICKHOUSE_HOST``, ``CLICKHOUSE_PORT``, ``CLICKHOUSE_USER``,
  ``CLICKHOUSE_PASSWORD``, ``CLICKHOUSE_DB``: ClickHouse connection.
- ``INGEST_TIMEOUT_SECONDS``: per-run deadline (default: ``600``).
- ``INGEST_PERSIST``: also insert pages into ``taxi_trips``.

See :mod:`chicago_taxi_trips.config` for the full list.
"""
import sys
from pathlib import Path
from datetime import datetime, timedelta

from airflow import DAG
from airflow.operators.python import PythonOperator


sys.path.append(Path.joinpath(Path(__file__).parent.parent, "src").as_posix())

from chicago_taxi_trips.config import load_settings
from chicago_taxi_trips.load import run_trip_ingestion
from chicago_taxi_trips.log import configure_logging


def ingest_trips() -> None:
    """Read settings at task runtime and run one bounded ingestion."""
    settings = load_settings()
    configure_logging(settings.log_level)
    run_trip_ingestion(settings)


default_args = {
    "owner": "airflow",
    "retries": 1,
    "retry_delay": timedelta(minutes=1),
}

with DAG(
    dag_id=Path(__file__).stem,
    start_date=datetime(2024, 1, 1),
    schedule="@daily",
    catchup=False,
    default_args=default_args,
    tags=["chicago", "taxi_trips"],
) as dag:

    dag.doc_md = """
    Chicago Taxi Trips Ingestion DAG
    ================================

    **Flow**
      #. Ensure the ``taxi_trips`` table exists.
      #. Request ``$limit=100&$offset=N`` pages until an empty page or the deadline.
      #. Render each page as a table; optionally insert it into ClickHouse.

    **Reliability**
      - A malformed page or a failed request fails the task (one Airflow retry).
      - Reaching the deadline ends the task successfully.
    """

    ingest_task = PythonOperator(
        task_id="ingest_taxi_trips",
        python_callable=ingest_trips,
        # in-process deadline fires first; this only catches a hung request
        execution_timeout=timedelta(minutes=15),
    )
