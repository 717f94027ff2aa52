"""Merge list entry, sample and details into one normalized metric record.

Merge order contract: sample values are applied first and detail attributes
second, so a detail attribute overwrites a sample value with the same name.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, Optional

from . import constants
from .models import (
    SAMPLE_TIME_KEY,
    DetailRecord,
    DeviceListEntry,
    FieldValue,
    JsonValue,
    MetricRecord,
    SampleRecord,
    epoch_to_datetime,
    is_epoch_number,
)

LOGGER = logging.getLogger(__name__)

# Detail keys already represented by tags or carrying no metric value.
EXCLUDED_DETAIL_KEYS: FrozenSet[str] = frozenset(
    {"id", "deviceType", "location", "segment", "sensors"}
)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_field_value(value: JsonValue) -> Optional[FieldValue]:
    """Coerce a decoded JSON value into a metric field value.

    Scalars pass through unchanged, null yields None (field dropped) and
    nested objects/arrays become compact JSON strings with sorted keys.
    """

    if value is None:
        return None
    if isinstance(value, (bool, int, float, str)):
        return value
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


class RecordMerger:
    """Builds `MetricRecord` instances from the three per-device documents."""

    def __init__(
        self,
        *,
        measurement: str = constants.MEASUREMENT_NAME,
        source_tag: str = constants.SOURCE_TAG,
        clock: Optional[Clock] = None,
    ) -> None:
        self.measurement = measurement
        self.source_tag = source_tag
        self._clock = clock or _utcnow

    def build_tags(self, entry: DeviceListEntry) -> Dict[str, str]:
        segment = entry.segment
        return {
            "name": self.source_tag,
            "id": entry.id,
            "deviceType": entry.device_type,
            "segment.id": segment.id,
            "segment.name": segment.name,
            "segment.active": "true" if segment.active else "false",
            "segment.started": segment.started,
        }

    def merge(
        self,
        entry: DeviceListEntry,
        sample: SampleRecord,
        details: DetailRecord,
        *,
        now: Optional[datetime] = None,
    ) -> MetricRecord:
        timestamp = sample.timestamp or now or self._clock()
        fields: Dict[str, FieldValue] = {}

        for key, value in sample.values.items():
            if key == SAMPLE_TIME_KEY:
                if is_epoch_number(value):
                    timestamp = epoch_to_datetime(value)
                continue
            self._set_field(fields, key, value)

        for key, value in details.attributes.items():
            if key in EXCLUDED_DETAIL_KEYS:
                continue
            self._set_field(fields, key, value)

        if not fields:
            LOGGER.debug("Device %s produced no fields", entry.id)

        return MetricRecord(
            measurement=self.measurement,
            tags=self.build_tags(entry),
            fields=fields,
            timestamp=timestamp,
        )

    @staticmethod
    def _set_field(fields: Dict[str, FieldValue], key: str, value: JsonValue) -> None:
        normalized = normalize_field_value(value)
        if normalized is not None:
            fields[key] = normalized
