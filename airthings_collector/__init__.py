"""Airthings consumer API collector producing normalized metric records."""

from .collector import AirthingsCollector
from .errors import (
    AuthError,
    CollectorError,
    ConfigurationError,
    DecodeError,
    HttpStatusError,
    MissingFieldError,
    TransportError,
)
from .merger import RecordMerger
from .models import DetailRecord, DeviceListEntry, MetricRecord, SampleRecord

__version__ = "0.1.0"

__all__ = [
    "AirthingsCollector",
    "AuthError",
    "CollectorError",
    "ConfigurationError",
    "DecodeError",
    "DetailRecord",
    "DeviceListEntry",
    "HttpStatusError",
    "MetricRecord",
    "MissingFieldError",
    "RecordMerger",
    "SampleRecord",
    "TransportError",
    "__version__",
]
