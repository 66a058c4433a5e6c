"""Error taxonomy for the trip ingestion pipeline.

Every failure raised by the pipeline derives from :class:`IngestionError`.
Cancellation (deadline elapsed) is not an error and has no exception type:
the fetch loop simply returns.
"""
from typing import Any, Dict, Optional


class IngestionError(Exception):
    """Base class for pipeline failures.

    Parameters
    ----------
    message
        Human readable description of the failure.
    details
        Optional structured context (URL, offset, offending fields, ...).
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class DecodeError(IngestionError, ValueError):
    """A raw JSON value could not be converted to its strict type.

    Subclasses :class:`ValueError` so pydantic validators surface it as a
    regular validation failure.
    """


class TransportError(IngestionError):
    """The outbound HTTP request failed or returned a non-success status."""


class SinkError(IngestionError):
    """Schema creation or persistence of a page failed."""
