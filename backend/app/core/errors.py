"""
Error taxonomy shared by the NASA gateway and the API layer.

Upstream failures carry the HTTP status when one is known so the API
layer can decide between passing a client error through and answering
with a gateway error.
"""

from typing import Optional


class SpaceNowError(Exception):
    """Base class for all application errors."""


class UpstreamError(SpaceNowError):
    """A call to an upstream provider failed."""

    def __init__(self, message: str, status: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.url = url

    @property
    def is_client_error(self) -> bool:
        return self.status is not None and 400 <= self.status < 500 and self.status != 429


class UpstreamHTTPError(UpstreamError):
    """Upstream answered with a non-2xx status."""


class UpstreamTimeoutError(UpstreamError):
    """No response arrived before the per-attempt deadline."""


class UpstreamConnectionError(UpstreamError):
    """Transport-level failure (DNS, refused connection, reset...)."""


class UpstreamParseError(UpstreamError):
    """Upstream body was not valid JSON."""


class MissingDateRangeError(SpaceNowError, ValueError):
    def __init__(self, message: str = "startDate and endDate required"):
        super().__init__(message)
        self.message = message


class UnknownEventTypeError(SpaceNowError, ValueError):
    def __init__(self, event_type: str):
        self.event_type = event_type
        self.message = f"Unknown event type: {event_type}"
        super().__init__(self.message)
