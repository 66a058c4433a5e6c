"""Decoding of API response pages into :class:`~.models.TripRecord` lists.

A page is the JSON array returned by one paginated request. By default a
page is all-or-nothing: the first element that fails to decode raises
:class:`~.errors.DecodeError` for the whole page. With ``strict=False`` the
parser isolates failures per record and returns them as diagnostics next to
the valid rows, the same ``(valid, invalid)`` shape the loaders consume.
"""
import json
from typing import Any, List, Tuple, Union

from .errors import DecodeError
from .models import TripRecord


def parse_trip_page(
    payload: Any,
    strict: bool = True,
) -> Tuple[List[TripRecord], List[dict]]:
    """Validate a decoded JSON page into trip records.

    Parameters
    ----------
    payload
        Decoded response body. Must be a JSON array of objects.
    strict
        When ``True`` any invalid element aborts the page. When ``False``
        invalid elements are collected and skipped.

    Returns
    -------
    tuple[list[TripRecord], list[dict]]
        ``(valid_rows, invalid_rows)``; ``invalid_rows`` elements look like
        ``{"index": int, "row": Any, "errors": list[dict]}`` and are always
        empty in strict mode.

    Raises
    ------
    DecodeError
        If ``payload`` is not a list, or in strict mode if any element fails.
    """
    if not isinstance(payload, list):
        raise DecodeError(
            f"expected a JSON array of trips, got {type(payload).__name__}",
        )

    valid: List[TripRecord] = []
    invalid: List[dict] = []
    for index, row in enumerate(payload):
        try:
            if not isinstance(row, dict):
                raise DecodeError(
                    f"expected a JSON object at index {index}, got {type(row).__name__}",
                    details={"errors": [{"type": "not_an_object", "msg": "expected object"}]},
                )
            valid.append(TripRecord.from_json(row))
        except DecodeError as e:
            if strict:
                e.details.setdefault("index", index)
                raise
            invalid.append({"index": index, "row": row, "errors": e.details.get("errors", [])})

    return valid, invalid


def parse_trip_body(
    body: Union[bytes, str],
    strict: bool = True,
) -> Tuple[List[TripRecord], List[dict]]:
    """JSON-decode a raw response body and validate it with :func:`parse_trip_page`."""
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise DecodeError(f"response body is not valid JSON: {e}") from e
    return parse_trip_page(payload, strict=strict)
