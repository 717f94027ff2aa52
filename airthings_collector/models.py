"""Data types flowing through the collection pipeline."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .errors import DecodeError

LOGGER = logging.getLogger(__name__)

JsonScalar = Union[bool, int, float, str, None]
JsonValue = Union[JsonScalar, List["JsonValue"], Dict[str, "JsonValue"]]
FieldValue = Union[bool, int, float, str]

SAMPLE_TIME_KEY = "time"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def is_epoch_number(value: Any) -> bool:
    """Return True for JSON numbers usable as epoch seconds (bools excluded)."""

    return isinstance(value, (int, float)) and not isinstance(value, bool)


def epoch_to_datetime(value: float) -> datetime:
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise DecodeError(f"Sample time {value!r} is not a valid epoch timestamp") from exc


@dataclass(frozen=True, slots=True)
class Segment:
    id: str = ""
    name: str = ""
    started: str = ""
    active: bool = False

    @classmethod
    def from_payload(cls, payload: Any) -> "Segment":
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise DecodeError(f"Expected segment object, got {type(payload).__name__}")
        return cls(
            id=_as_text(payload.get("id")),
            name=_as_text(payload.get("name")),
            started=_as_text(payload.get("started")),
            active=bool(payload.get("active", False)),
        )


@dataclass(frozen=True, slots=True)
class Location:
    id: str = ""
    name: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "Location":
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise DecodeError(f"Expected location object, got {type(payload).__name__}")
        return cls(id=_as_text(payload.get("id")), name=_as_text(payload.get("name")))


@dataclass(frozen=True, slots=True)
class DeviceListEntry:
    """One element of the `devices` array returned by the device list call."""

    id: str
    device_type: str
    segment: Segment = field(default_factory=Segment)
    location: Location = field(default_factory=Location)
    sensors: Tuple[JsonValue, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "DeviceListEntry":
        if not isinstance(payload, Mapping):
            raise DecodeError(
                f"Expected device object in device list, got {type(payload).__name__}"
            )
        device_id = payload.get("id")
        if device_id is None or device_id == "":
            raise DecodeError("Device list entry is missing 'id'")

        sensors = payload.get("sensors") or []
        if not isinstance(sensors, list):
            raise DecodeError(
                f"Expected sensors list for device {device_id}, got {type(sensors).__name__}"
            )

        return cls(
            id=_as_text(device_id),
            device_type=_as_text(payload.get("deviceType")),
            segment=Segment.from_payload(payload.get("segment")),
            location=Location.from_payload(payload.get("location")),
            sensors=tuple(sensors),
        )


@dataclass(frozen=True, slots=True)
class SampleRecord:
    """Latest sensor snapshot for a device with the `time` key already extracted."""

    values: Dict[str, JsonValue] = field(default_factory=dict)
    timestamp: Optional[datetime] = None

    @classmethod
    def from_data(
        cls, data: Mapping[str, JsonValue], *, device_id: Optional[str] = None
    ) -> "SampleRecord":
        values = dict(data)
        timestamp: Optional[datetime] = None
        if SAMPLE_TIME_KEY in values:
            raw_time = values.pop(SAMPLE_TIME_KEY)
            if is_epoch_number(raw_time):
                timestamp = epoch_to_datetime(raw_time)
            else:
                LOGGER.warning(
                    "Ignoring non-numeric sample time %r for device %s",
                    raw_time,
                    device_id,
                )
        return cls(values=values, timestamp=timestamp)


@dataclass(frozen=True, slots=True)
class DetailRecord:
    """Descriptive/status document for a device; no key is required."""

    attributes: Dict[str, JsonValue] = field(default_factory=dict)


_MEASUREMENT_ESCAPES = str.maketrans(
    {"\\": "\\\\", ",": "\\,", " ": "\\ ", "\n": "\\n", "\r": "\\r", "\t": "\\t"}
)
_KEY_ESCAPES = str.maketrans({**_MEASUREMENT_ESCAPES, ord("="): "\\="})


def _escape_key(value: str) -> str:
    return value.translate(_KEY_ESCAPES)


def _escape_measurement(value: str) -> str:
    return value.translate(_MEASUREMENT_ESCAPES)


def _format_field_value(value: FieldValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(value)
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass(frozen=True, slots=True)
class MetricRecord:
    """Normalized output handed to the metrics sink, one per device per cycle."""

    measurement: str
    tags: Dict[str, str]
    fields: Dict[str, FieldValue]
    timestamp: datetime

    @property
    def timestamp_ns(self) -> int:
        delta = self.timestamp - _EPOCH
        seconds = delta.days * 86_400 + delta.seconds
        return seconds * 1_000_000_000 + delta.microseconds * 1_000

    def as_dict(self) -> Dict[str, Any]:
        return {
            "measurement": self.measurement,
            "tags": dict(self.tags),
            "fields": dict(self.fields),
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        return json.dumps(self.as_dict(), separators=(",", ":"))

    def to_line_protocol(self) -> str:
        """Render the record as an InfluxDB line protocol line.

        Tags with empty values are omitted since line protocol cannot express
        them. Raises ValueError for a record without fields.
        """

        if not self.fields:
            raise ValueError(f"Metric {self.measurement!r} has no fields")

        parts = [_escape_measurement(self.measurement)]
        for key in sorted(self.tags):
            value = self.tags[key]
            if value == "":
                continue
            parts.append(f"{_escape_key(key)}={_escape_key(value)}")
        head = ",".join(parts)

        body = ",".join(
            f"{_escape_key(key)}={_format_field_value(self.fields[key])}"
            for key in sorted(self.fields)
        )
        return f"{head} {body} {self.timestamp_ns}"
