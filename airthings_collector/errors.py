"""Exception hierarchy for the collection pipeline.

Every error raised here aborts the current collection cycle. None of them is
fatal to the process: the scheduler logs the failure and tries again at the
next interval.
"""

from __future__ import annotations

from typing import Optional


class CollectorError(RuntimeError):
    """Base class for collection cycle failures."""


class ConfigurationError(CollectorError):
    """Raised when the collector cannot be built from the given settings."""


class AuthError(CollectorError):
    """Raised when the OAuth2 client-credentials exchange fails."""


class TransportError(CollectorError):
    """Raised when the API cannot be reached (connection failure, timeout)."""


class HttpStatusError(CollectorError):
    """Raised when the API answers with anything other than 200."""

    def __init__(self, status: int, url: str) -> None:
        super().__init__(f"received HTTP status code {status} from {url!r}; expected 200")
        self.status = status
        self.url = url


class DecodeError(CollectorError):
    """Raised when a response body is not the JSON shape we expect."""


class MissingFieldError(DecodeError):
    """Raised when a required key is absent from a response document."""

    def __init__(self, field: str, device_id: Optional[str] = None) -> None:
        if device_id:
            message = f"No key {field!r} in json data from sensor {device_id}"
        else:
            message = f"No key {field!r} in json data"
        super().__init__(message)
        self.field = field
        self.device_id = device_id
