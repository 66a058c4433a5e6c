"""
Tests for console rendering.
"""
import io

from chicago_taxi_trips.display import TABLE_COLUMNS, render_trips, trip_table
from chicago_taxi_trips.models import TripRecord

from conftest import make_page, make_trip_json


def _trips(count: int):
    return [TripRecord.from_json(row) for row in make_page(0, count)]


def test_trip_table_columns_and_rows() -> None:
    table = trip_table(_trips(2))

    assert table.columns == TABLE_COLUMNS
    assert table.height == 2
    assert table.row(0) == (
        "trip-00000",
        "taxi-42",
        "2023-01-15T08:30:00Z",
        "2023-01-15T08:45:00Z",
        "900",
        "3.20",
        "12.50",
        "2.00",
        "16.00",
    )


def test_trip_table_empty() -> None:
    table = trip_table([])

    assert table.columns == TABLE_COLUMNS
    assert table.height == 0


def test_render_writes_every_row() -> None:
    out = io.StringIO()
    trips = _trips(30)

    render_trips(trips, stream=out)
    text = out.getvalue()

    for column in TABLE_COLUMNS:
        assert column in text
    assert "trip-00000" in text
    assert "trip-00029" in text
    assert "12.50" in text
    assert "2023-01-15T08:45:00Z" in text


def test_render_does_not_mutate_records() -> None:
    trips = [TripRecord.from_json(make_trip_json(0))]
    before = [t.model_dump() for t in trips]

    render_trips(trips, stream=io.StringIO())

    assert [t.model_dump() for t in trips] == before
