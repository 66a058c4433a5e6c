"""
Storage of taxi trips in ClickHouse and the ingestion orchestrator.

This module provides:
- Idempotent table creation (:func:`ensure_schema`)
- Batch-friendly inserts of trip pages (:func:`insert_trips`, :class:`TripStore`)
- A scoped connection helper (:func:`clickhouse_client`)
- The end-to-end run used by the CLI and the DAG (:func:`run_trip_ingestion`)
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from clickhouse_driver import Client
from clickhouse_driver.errors import Error as ClickHouseError
from loguru import logger

from .config import Settings
from .context import deadline_context
from .display import render_trips
from .download import TripSink, fetch_and_render_trips
from .errors import SinkError
from .models import TripRecord

DEFAULT_TABLE = "taxi_trips"

TRIPS_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS {table} (
    trip_id String,
    taxi_id Nullable(String),
    trip_start_timestamp DateTime64(3, 'UTC'),
    trip_end_timestamp DateTime64(3, 'UTC'),
    trip_seconds Nullable(Int64),
    trip_miles Nullable(Float64),
    pickup_census_tract Nullable(String),
    dropoff_census_tract Nullable(String),
    pickup_community_area Nullable(Int32),
    dropoff_community_area Nullable(Int32),
    fare Nullable(Float64),
    tips Nullable(Float64),
    tolls Nullable(Float64),
    extras Nullable(Float64),
    trip_total Nullable(Float64),
    payment_type Nullable(String),
    company Nullable(String),
    pickup_centroid_latitude Nullable(Float64),
    pickup_centroid_longitude Nullable(Float64),
    pickup_centroid_location Nullable(Float64),
    dropoff_centroid_latitude Nullable(Float64),
    dropoff_centroid_longitude Nullable(Float64),
    dropoff_centroid_location Nullable(Float64)
)
ENGINE = MergeTree
PRIMARY KEY trip_id
"""


def ensure_schema(client: Client, table: str = DEFAULT_TABLE) -> None:
    """
    Create the trips table if it does not exist yet.

    Safe to call repeatedly: the statement is ``CREATE TABLE IF NOT EXISTS``,
    so a second call neither fails nor duplicates anything.

    Raises
    ------
    SinkError
        If ClickHouse rejects the statement or is unreachable.
    """
    try:
        client.execute(TRIPS_TABLE_DDL.format(table=table))
    except (ClickHouseError, OSError) as e:
        raise SinkError(f"Could not ensure table {table}: {e}", details={"table": table}) from e
    logger.info(f"Table {table} is ready")


def insert_trips(
    client: Client,
    trips: Sequence[TripRecord],
    table: str = DEFAULT_TABLE,
    batch_size: int = 50_000,
) -> int:
    """
    Insert trip records into a ClickHouse table in sub-batches.

    Parameters
    ----------
    client
        Connected :class:`clickhouse_driver.Client`.
    trips
        Validated trip records, typically one API page.
    table
        Target table name (e.g. ``"taxi_trips"`` or ``"nyc.taxi_trips"``).
    batch_size
        Maximum number of rows per insert statement.

    Returns
    -------
    int
        Total number of rows inserted.

    Raises
    ------
    SinkError
        If an insert statement fails.

    Notes
    -----
    ClickHouse does not enforce primary key uniqueness, so re-ingesting the
    same offsets across runs stores the trips again.
    """
    if not trips:
        return 0

    inserted = 0
    for i in range(0, len(trips), batch_size):
        records = [trip.to_row() for trip in trips[i:i + batch_size]]
        cols = list(records[0].keys())
        try:
            client.execute(f"INSERT INTO {table} ({', '.join(cols)}) VALUES", records)
        except (ClickHouseError, OSError) as e:
            raise SinkError(
                f"Insert into {table} failed: {e}",
                details={"table": table, "rows": len(records)},
            ) from e
        inserted += len(records)

    return inserted


class TripStore:
    """Schema and storage sink bound to one client and table."""

    def __init__(self, client: Client, table: str = DEFAULT_TABLE):
        self.client = client
        self.table = table

    def ensure_schema(self) -> None:
        ensure_schema(self.client, self.table)

    def insert_batch(self, trips: Sequence[TripRecord]) -> int:
        inserted = insert_trips(self.client, trips, self.table)
        logger.info(f"[{self.table}] inserted {inserted} rows")
        return inserted


@contextmanager
def clickhouse_client(clickhouse_con: dict, timeout: Optional[float] = None) -> Iterator[Client]:
    """
    Yield a :class:`clickhouse_driver.Client` and disconnect it on exit.

    The client connects lazily on its first query and is released on every
    exit path, including cancellation and fatal errors. ``timeout`` bounds
    both connecting and every query round-trip.
    """
    kwargs = dict(clickhouse_con)
    if timeout is not None:
        kwargs.setdefault("connect_timeout", timeout)
        kwargs.setdefault("send_receive_timeout", timeout)
    client = Client(**kwargs)
    try:
        yield client
    finally:
        client.disconnect()


# ---------- Orchestrator used by the CLI and the DAG operator ----------

def run_trip_ingestion(settings: Settings) -> None:
    """
    Ensure the schema, then fetch and render trips until the data or the
    deadline runs out.

    Steps:
    1. Start the deadline timer (``settings.timeout_seconds``).
    2. Acquire one ClickHouse connection for the whole run; its connect and
       query timeouts are capped at the same budget.
    3. Ensure the trips table exists.
    4. Walk the API page by page; every page is rendered to stdout and,
       when ``settings.persist`` is set, inserted into the table.

    Reaching the deadline is a normal return. Decode, transport and sink
    errors propagate.
    """
    with deadline_context(settings.timeout_seconds) as ctx:
        with clickhouse_client(settings.clickhouse_con, timeout=settings.timeout_seconds) as client:
            store = TripStore(client, settings.table)
            store.ensure_schema()

            sinks: List[TripSink] = [render_trips]
            if settings.persist:
                sinks.append(store.insert_batch)

            fetch_and_render_trips(
                ctx,
                settings.base_url,
                sinks=sinks,
                page_size=settings.page_size,
                max_retries=settings.max_retries,
                strict=settings.strict,
            )
