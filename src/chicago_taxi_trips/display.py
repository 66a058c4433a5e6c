"""Console rendering of trip pages."""
import sys
from typing import List, Optional, Sequence, TextIO

import polars as pl

from .models import TripRecord

TABLE_COLUMNS: List[str] = [
    "Trip ID",
    "Taxi ID",
    "Start Time",
    "End Time",
    "Seconds",
    "Miles",
    "Fare",
    "Tips",
    "Total",
]


def trip_table(trips: Sequence[TripRecord]) -> pl.DataFrame:
    """Build a string-typed DataFrame holding the display fields of ``trips``."""
    rows = [trip.display_row() for trip in trips]
    return pl.DataFrame(
        rows,
        schema={name: pl.Utf8 for name in TABLE_COLUMNS},
        orient="row",
    )


def render_trips(trips: Sequence[TripRecord], stream: Optional[TextIO] = None) -> None:
    """Write ``trips`` as a table to ``stream`` (stdout by default).

    All rows and columns are printed; nothing is truncated.
    """
    stream = stream or sys.stdout
    table = trip_table(trips)
    with pl.Config(
        tbl_rows=-1,
        tbl_cols=-1,
        tbl_width_chars=1000,
        fmt_str_lengths=100,
        tbl_hide_column_data_types=True,
        tbl_hide_dataframe_shape=True,
    ):
        stream.write(f"{table}\n")
