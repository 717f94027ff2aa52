"""Metric sinks receiving finished records."""

from __future__ import annotations

import logging
import sys
from typing import List, Optional, Protocol, TextIO

from .models import MetricRecord

LOGGER = logging.getLogger(__name__)


class MetricSink(Protocol):
    """Minimal contract for whatever accumulates finished metric records."""

    def add_metric(self, record: MetricRecord) -> None:
        """Accept one record; ownership passes to the sink."""
        ...


class MemorySink:
    """Keeps records in memory."""

    def __init__(self) -> None:
        self.records: List[MetricRecord] = []

    def add_metric(self, record: MetricRecord) -> None:
        self.records.append(record)

    def clear(self) -> None:
        self.records.clear()


class LineProtocolSink:
    """Writes InfluxDB line protocol, one line per record.

    Records without fields cannot be expressed in line protocol and are
    skipped.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream or sys.stdout

    def add_metric(self, record: MetricRecord) -> None:
        if not record.fields:
            LOGGER.debug(
                "Skipping line protocol output for device %s: no fields",
                record.tags.get("id"),
            )
            return
        self._stream.write(record.to_line_protocol() + "\n")
        self._stream.flush()


class JsonLinesSink:
    """Writes one compact JSON document per record."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream or sys.stdout

    def add_metric(self, record: MetricRecord) -> None:
        self._stream.write(record.to_json() + "\n")
        self._stream.flush()


def create_sink(output_format: str, stream: Optional[TextIO] = None) -> MetricSink:
    if output_format == "json":
        return JsonLinesSink(stream)
    if output_format == "line":
        return LineProtocolSink(stream)
    raise ValueError(f"Unsupported output format: {output_format!r}")
