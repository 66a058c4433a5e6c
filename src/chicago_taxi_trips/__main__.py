"""Run one bounded ingestion: ``python -m chicago_taxi_trips``.

Exit status is ``0`` when the dataset or the deadline runs out and ``1``
when a decode, transport or sink error aborts the run.
"""
from loguru import logger

from .config import load_settings
from .errors import IngestionError
from .load import run_trip_ingestion
from .log import configure_logging


def main() -> int:
    settings = load_settings()
    configure_logging(settings.log_level)

    try:
        run_trip_ingestion(settings)
    except IngestionError as e:
        logger.exception(f"Ingestion aborted: {e.message} {e.details}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
