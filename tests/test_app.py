import asyncio
from pathlib import Path

import pytest

from airthings_collector.app import AirthingsCollectorApp
from airthings_collector.config import load_config
from airthings_collector.errors import TransportError
from airthings_collector.sinks import MemorySink


class CountingCollector:
    """Fails the first cycle, then succeeds and asks the app to stop."""

    first_error: Exception = TransportError("connection reset")

    def __init__(self) -> None:
        self.app = None
        self.cycles = 0
        self.closed = False

    async def gather(self, sink) -> int:
        self.cycles += 1
        if self.cycles == 1:
            raise self.first_error
        self.app.request_shutdown()
        return 0

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def settings(tmp_path: Path):
    config_path = tmp_path / "airthings-collector.cfg"
    config_path.write_text(
        "[collector]\ninterval_seconds = 0.01\nstep_timeout_seconds = 1\n",
        encoding="utf-8",
    )
    return load_config(config_path)


@pytest.mark.asyncio
async def test_run_survives_failed_cycle_and_stops_on_request(settings):
    collector = CountingCollector()
    app = AirthingsCollectorApp(settings, collector=collector, sink=MemorySink())
    collector.app = app

    await asyncio.wait_for(app.run(), timeout=2.0)

    assert collector.cycles == 2
    assert collector.closed is True
    assert app.scheduler.stats.failed == 1
    assert app.scheduler.stats.completed == 1


@pytest.mark.asyncio
async def test_run_once_closes_collector_on_error(settings):
    collector = CountingCollector()
    app = AirthingsCollectorApp(settings, collector=collector, sink=MemorySink())

    with pytest.raises(TransportError):
        await app.run_once()

    assert collector.closed is True


class BrokenSinkCollector(CountingCollector):
    first_error = BrokenPipeError("sink stream closed")


@pytest.mark.asyncio
async def test_run_survives_sink_failure_and_closes_collector(settings):
    collector = BrokenSinkCollector()
    app = AirthingsCollectorApp(settings, collector=collector, sink=MemorySink())
    collector.app = app

    await asyncio.wait_for(app.run(), timeout=2.0)

    assert collector.cycles == 2
    assert collector.closed is True
    assert app.scheduler.stats.last_error is None
    assert app.scheduler.stats.failed == 1
