"""Main application entry-point for airthings-collector."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .collector import AirthingsCollector
from .config import CollectorSettings, load_config
from .logging import configure_logging
from .polling import PollingScheduler
from .sinks import MetricSink, create_sink

LOGGER = logging.getLogger(__name__)


class AirthingsCollectorApp:
    """Coordinates collector startup, periodic collection and shutdown.

    The collector and sink can be injected for testing or to hand records to
    a different metrics pipeline.
    """

    def __init__(
        self,
        config: Optional[CollectorSettings] = None,
        *,
        collector: Optional[AirthingsCollector] = None,
        sink: Optional[MetricSink] = None,
    ) -> None:
        self._config = config or load_config()
        self._collector = collector or AirthingsCollector.from_config(
            self._config.airthings, self._config.tls
        )
        self._sink = sink or create_sink(self._config.output.format)
        self._shutdown_event = asyncio.Event()
        self._scheduler = PollingScheduler(
            run_cycle=self._run_cycle,
            interval_seconds=self._config.collector.interval_seconds,
            step_timeout_seconds=self._config.collector.step_timeout_seconds,
            stop_event=self._shutdown_event,
        )

    @property
    def scheduler(self) -> PollingScheduler:
        return self._scheduler

    async def run(self) -> None:
        """Poll until `request_shutdown()` is called or the task is cancelled."""

        LOGGER.info(
            "airthings-collector starting (config=%s, interval=%.0fs)",
            self._config.path,
            self._config.collector.interval_seconds,
        )
        self._scheduler.start()
        try:
            await self._scheduler.wait()
        except asyncio.CancelledError:
            LOGGER.info("airthings-collector received shutdown signal")
            raise
        finally:
            try:
                await self._scheduler.stop()
            finally:
                await self._collector.aclose()
            LOGGER.info("airthings-collector stopped")

    async def run_once(self) -> int:
        """Run a single cycle, propagating any collection error."""

        try:
            return await self._collector.gather(self._sink)
        finally:
            await self._collector.aclose()

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    async def _run_cycle(self) -> None:
        await self._collector.gather(self._sink)

    @classmethod
    def start(cls, config: Optional[CollectorSettings] = None) -> None:
        settings = config or load_config()
        configure_logging(
            settings.logging.level,
            log_path=settings.logging.path,
            log_network=settings.logging.log_network,
        )
        instance = cls(config=settings)
        try:
            asyncio.run(instance.run())
        except KeyboardInterrupt:
            LOGGER.info("airthings-collector received shutdown signal")
