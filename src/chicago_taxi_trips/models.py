"""Tolerant decoders and the trip record model.

The Chicago open-data API encodes most numbers and every timestamp as JSON
strings. The decoders in this module convert one such scalar into a strict
Python value and raise :class:`~.errors.DecodeError` when the content is not
parseable. They are attached to the Pydantic v2 model through
``BeforeValidator`` hooks so every non-string field of :class:`TripRecord` is
decoded the same way.

Models
------
Location
    GeoJSON-like point (``type`` tag plus a ``[lon, lat]`` pair).
TripRecord
    One taxi trip as served by the ``wrvz-psew`` dataset.
"""
import math
import re
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError

from .errors import DecodeError

TIMESTAMP_LAYOUT = "%Y-%m-%dT%H:%M:%S.%f"

_TIMESTAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}", re.ASCII)
_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)
_FLOAT_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def decode_timestamp(value: Any) -> datetime:
    """Parse a ``YYYY-MM-DDTHH:MM:SS.mmm`` string into a UTC datetime.

    Timestamps are required on every trip, so an empty string is malformed
    rather than unknown.

    Raises
    ------
    DecodeError
        If ``value`` is not a string matching the layout exactly.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise DecodeError(f"expected timestamp string, got {type(value).__name__}")
    text = _unquote(value)
    if not _TIMESTAMP_RE.fullmatch(text):
        raise DecodeError(f"malformed timestamp: {text!r}", details={"value": text})
    try:
        parsed = datetime.strptime(text, TIMESTAMP_LAYOUT)
    except ValueError as e:
        # e.g. month 13
        raise DecodeError(f"malformed timestamp: {text!r}", details={"value": text}) from e
    return parsed.replace(tzinfo=timezone.utc)


def decode_int(value: Any) -> Optional[int]:
    """Parse a base-10 integer that may arrive quoted.

    ``None`` and ``""`` mean the source had no value and yield ``None``.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise DecodeError(f"expected integer, got boolean {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise DecodeError(f"expected integer, got {value!r}", details={"value": value})
    if not isinstance(value, str):
        raise DecodeError(f"expected integer string, got {type(value).__name__}")
    text = _unquote(value)
    if text == "":
        return None
    if not _INT_RE.fullmatch(text):
        raise DecodeError(f"malformed integer: {text!r}", details={"value": text})
    return int(text)


def decode_float(value: Any) -> Optional[float]:
    """Parse a decimal number that may arrive quoted.

    ``None`` and ``""`` yield ``None``. Spellings such as ``nan`` or ``inf``
    are rejected since JSON never carries them.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise DecodeError(f"expected number, got boolean {value!r}")
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise DecodeError(f"non-finite number: {value!r}", details={"value": value})
        return float(value)
    if not isinstance(value, str):
        raise DecodeError(f"expected number string, got {type(value).__name__}")
    text = _unquote(value)
    if text == "":
        return None
    if not _FLOAT_RE.fullmatch(text):
        raise DecodeError(f"malformed number: {text!r}", details={"value": text})
    parsed = float(text)
    if not math.isfinite(parsed):
        # out of float64 range, e.g. "1e400"
        raise DecodeError(f"number out of range: {text!r}", details={"value": text})
    return parsed


StrictTimestamp = Annotated[datetime, BeforeValidator(decode_timestamp)]
LenientInt = Annotated[Optional[int], BeforeValidator(decode_int)]
LenientFloat = Annotated[Optional[float], BeforeValidator(decode_float)]
Coordinate = Annotated[float, BeforeValidator(decode_float)]


def _format_amount(value: Optional[float]) -> str:
    return "" if value is None else f"{value:.2f}"


def _format_timestamp(value: datetime) -> str:
    return value.isoformat(timespec="seconds").replace("+00:00", "Z")


class Location(BaseModel):
    """Centroid point of a pickup or dropoff area.

    Parameters
    ----------
    type
        Geometry tag, ``"Point"`` in practice.
    coordinates
        ``(longitude, latitude)`` pair.
    """
    model_config = ConfigDict(frozen=True)

    type: str
    coordinates: Tuple[Coordinate, Coordinate]


class TripRecord(BaseModel):
    """Validated Chicago taxi trip.

    ``trip_id`` and both timestamps are required. Every other field may be
    missing; numeric fields accept native JSON numbers or numeric strings,
    census tracts keep empty strings as given.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    trip_id: str
    taxi_id: Optional[str] = None
    trip_start_timestamp: StrictTimestamp
    trip_end_timestamp: StrictTimestamp
    trip_seconds: LenientInt = None
    trip_miles: LenientFloat = None
    pickup_census_tract: Optional[str] = None
    dropoff_census_tract: Optional[str] = None
    pickup_community_area: LenientInt = None
    dropoff_community_area: LenientInt = None
    fare: LenientFloat = None
    tips: LenientFloat = None
    tolls: LenientFloat = None
    extras: LenientFloat = None
    trip_total: LenientFloat = None
    payment_type: Optional[str] = None
    company: Optional[str] = None
    pickup_centroid_latitude: LenientFloat = None
    pickup_centroid_longitude: LenientFloat = None
    pickup_centroid_location: Optional[Location] = None
    dropoff_centroid_latitude: LenientFloat = None
    dropoff_centroid_longitude: LenientFloat = None
    dropoff_centroid_location: Optional[Location] = None

    @classmethod
    def from_json(cls, obj: Dict[str, Any]) -> "TripRecord":
        """Build a record from one decoded JSON object.

        Raises
        ------
        DecodeError
            If any field fails to decode. ``details`` holds the trip id and
            the per-field errors.
        """
        try:
            return cls.model_validate(obj)
        except ValidationError as e:
            trip_id = obj.get("trip_id")
            errors = e.errors(include_url=False, include_context=False)
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in errors})
            raise DecodeError(
                f"trip {trip_id!r} failed to decode: {', '.join(fields)}",
                details={"trip_id": trip_id, "errors": errors},
            ) from e

    def display_row(self) -> List[str]:
        """Display fields in console column order, formatted as strings."""
        return [
            self.trip_id,
            self.taxi_id or "",
            _format_timestamp(self.trip_start_timestamp),
            _format_timestamp(self.trip_end_timestamp),
            "" if self.trip_seconds is None else str(self.trip_seconds),
            _format_amount(self.trip_miles),
            _format_amount(self.fare),
            _format_amount(self.tips),
            _format_amount(self.trip_total),
        ]

    def to_row(self) -> Dict[str, Any]:
        """Storage row keyed by column name.

        Centroid locations are stored in a single float column that is left
        empty; the point is already captured by the latitude/longitude columns.
        """
        return {
            name: None if name in LOCATION_FIELDS else getattr(self, name)
            for name in type(self).model_fields
        }


LOCATION_FIELDS = frozenset({"pickup_centroid_location", "dropoff_centroid_location"})
