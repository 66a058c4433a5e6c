"""
Shared fixtures: raw trip payloads shaped like the Chicago open-data API.
"""
import json
from typing import Any, Callable, Dict, List
from unittest.mock import MagicMock

import pytest


def make_trip_json(index: int = 0, **overrides: Any) -> Dict[str, Any]:
    """Return one trip object with every numeric field string-encoded."""
    trip = {
        "trip_id": f"trip-{index:05d}",
        "taxi_id": "taxi-42",
        "trip_start_timestamp": "2023-01-15T08:30:00.000",
        "trip_end_timestamp": "2023-01-15T08:45:00.000",
        "trip_seconds": "900",
        "trip_miles": "3.2",
        "pickup_census_tract": "17031081500",
        "dropoff_census_tract": "",
        "pickup_community_area": "8",
        "dropoff_community_area": "32",
        "fare": "12.5",
        "tips": "2",
        "tolls": "0",
        "extras": "1.5",
        "trip_total": "16",
        "payment_type": "Credit Card",
        "company": "Flash Cab",
        "pickup_centroid_latitude": "41.899602111",
        "pickup_centroid_longitude": "-87.633308037",
        "pickup_centroid_location": {
            "type": "Point",
            "coordinates": [-87.6333080367, 41.899602111],
        },
        "dropoff_centroid_latitude": "41.880994471",
        "dropoff_centroid_longitude": "-87.632746489",
        "dropoff_centroid_location": {
            "type": "Point",
            "coordinates": [-87.6327464887, 41.8809944707],
        },
    }
    trip.update(overrides)
    return trip


def make_page(start: int, count: int) -> List[Dict[str, Any]]:
    return [make_trip_json(start + i) for i in range(count)]


def make_response(payload: Any) -> MagicMock:
    """Fake :class:`requests.Response` carrying ``payload`` as JSON."""
    response = MagicMock()
    response.content = json.dumps(payload).encode("utf-8")
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def trip_json() -> Dict[str, Any]:
    return make_trip_json()


@pytest.fixture
def trip_factory() -> Callable[..., Dict[str, Any]]:
    return make_trip_json
