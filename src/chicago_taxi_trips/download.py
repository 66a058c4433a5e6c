"""Paginated retrieval of taxi trips from the Chicago open-data API.

This module exposes:

- :func:`build_page_url` – Socrata ``$limit``/``$offset`` URL for one page.
- :func:`fetch_page` – single HTTP GET returning the raw body.
- :func:`iter_trip_pages` – generator walking the dataset page by page.
- :func:`fetch_and_render_trips` – drives the generator and feeds each page
  to the sinks.
"""
import time
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

import requests
from loguru import logger

from .config import DEFAULT_BASE_URL
from .context import ExecutionContext
from .errors import TransportError
from .models import TripRecord
from .parse import parse_trip_body

DEFAULT_PAGE_SIZE = 100

TripSink = Callable[[List[TripRecord]], object]


def build_page_url(base_url: str, limit: int, offset: int) -> str:
    """Return ``{base_url}?$limit={limit}&$offset={offset}``."""
    return f"{base_url}?$limit={limit}&$offset={offset}"


def _status_code(exc: Optional[requests.RequestException]) -> Optional[int]:
    return getattr(getattr(exc, "response", None), "status_code", None)


def is_retryable(exc: requests.RequestException) -> bool:
    """Connection failures, timeouts, 429 and 5xx are worth another attempt."""
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    status = _status_code(exc)
    return status is not None and (status == 429 or status >= 500)


def fetch_page(
    url: str,
    timeout: Optional[float] = None,
    max_retries: int = 1,
    ctx: Optional[ExecutionContext] = None,
) -> bytes:
    """Issue one GET and return the full response body.

    Parameters
    ----------
    url
        Fully built page URL.
    timeout
        Request timeout in seconds, ``None`` for no limit. Ignored when
        ``ctx`` is given: each attempt then uses the budget left in ``ctx``.
    max_retries
        Total attempts. The default of ``1`` fails on the first error.
        Further attempts back off exponentially (1s, 2s, 4s, capped at 8s)
        and only follow retryable failures (see :func:`is_retryable`).
    ctx
        Optional execution context. No attempt starts once it is cancelled,
        and backoff waits end early when it is.

    Raises
    ------
    TransportError
        If every attempt failed to connect, timed out or returned a
        non-success status, or ``ctx`` was cancelled between attempts.
    """
    last_exc: Optional[requests.RequestException] = None
    for attempt in range(1, max(1, max_retries) + 1):
        if ctx is not None:
            timeout = ctx.remaining()
            if ctx.cancelled or (timeout is not None and timeout <= 0):
                break
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
            return response.content
        except requests.RequestException as exc:
            last_exc = exc
            if attempt >= max_retries or not is_retryable(exc):
                break
            delay = min(2 ** (attempt - 1), 8)
            if ctx is None:
                logger.warning(f"GET {url} failed ({exc}), retrying in {delay}s")
                time.sleep(delay)
            elif ctx.cancelled:
                break
            else:
                logger.warning(f"GET {url} failed ({exc}), retrying in {delay}s")
                if ctx.wait(delay):
                    break

    if last_exc is None:
        raise TransportError(
            f"GET {url} not attempted: context cancelled",
            details={"url": url, "status_code": None},
        )
    raise TransportError(
        f"GET {url} failed: {last_exc}",
        details={"url": url, "status_code": _status_code(last_exc)},
    ) from last_exc


def iter_trip_pages(
    ctx: ExecutionContext,
    base_url: str = DEFAULT_BASE_URL,
    page_size: int = DEFAULT_PAGE_SIZE,
    start_offset: int = 0,
    max_retries: int = 1,
    strict: bool = True,
) -> Iterator[Tuple[int, List[TripRecord]]]:
    """Yield ``(offset, trips)`` for every non-empty page in offset order.

    Stops without error when the API returns an empty page or when ``ctx``
    is cancelled. Cancellation is checked before every request, so at most
    one in-flight fetch outlives the deadline.

    Raises
    ------
    TransportError
        If a page could not be fetched and the context is still live.
    DecodeError
        If any element of a page fails to decode (strict mode).
    """
    offset = start_offset
    while True:
        if ctx.cancelled:
            logger.info(f"Context cancelled ({ctx.reason}), stopping at offset {offset}")
            return

        timeout = ctx.remaining()
        if timeout is not None and timeout <= 0:
            logger.info(f"Deadline reached, stopping at offset {offset}")
            return

        url = build_page_url(base_url, page_size, offset)
        logger.info(f"Fetching data from: {url}")
        try:
            body = fetch_page(url, max_retries=max_retries, ctx=ctx)
        except TransportError:
            if ctx.cancelled:
                logger.info(f"Context cancelled during request ({ctx.reason}), stopping at offset {offset}")
                return
            raise

        trips, invalid = parse_trip_body(body, strict=strict)
        if invalid:
            logger.warning(f"Skipped {len(invalid)} undecodable trips at offset {offset}")
        logger.debug(f"Decoded {len(trips)} trips at offset {offset}")

        if not trips and not invalid:
            logger.info(f"Empty page at offset {offset}, end of dataset")
            return

        if trips:
            yield offset, trips
        offset += page_size


def fetch_and_render_trips(
    ctx: ExecutionContext,
    base_url: str = DEFAULT_BASE_URL,
    sinks: Sequence[TripSink] = (),
    page_size: int = DEFAULT_PAGE_SIZE,
    start_offset: int = 0,
    max_retries: int = 1,
    strict: bool = True,
) -> None:
    """Walk the dataset and hand every non-empty page to each sink in turn.

    Pages are fetched sequentially; a sink sees page ``N`` before page
    ``N + 1`` is requested. Errors from fetching, decoding or a sink
    propagate to the caller.
    """
    pages = 0
    total = 0
    for offset, trips in iter_trip_pages(
        ctx,
        base_url,
        page_size=page_size,
        start_offset=start_offset,
        max_retries=max_retries,
        strict=strict,
    ):
        for sink in sinks:
            sink(trips)
        pages += 1
        total += len(trips)

    logger.info(f"Ingestion finished: {pages} pages, {total} trips")
