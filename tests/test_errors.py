"""
Tests for the error taxonomy.
"""
from chicago_taxi_trips.errors import DecodeError, IngestionError, SinkError, TransportError


def test_hierarchy() -> None:
    assert issubclass(DecodeError, IngestionError)
    assert issubclass(DecodeError, ValueError)
    assert issubclass(TransportError, IngestionError)
    assert issubclass(SinkError, IngestionError)


def test_message_and_details() -> None:
    error = TransportError("GET failed", details={"url": "http://x"})

    assert str(error) == "GET failed"
    assert error.message == "GET failed"
    assert error.details == {"url": "http://x"}


def test_details_default_to_empty_dict() -> None:
    assert SinkError("boom").details == {}
