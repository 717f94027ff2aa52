"""Interval scheduler driving collection cycles.

Each cycle runs to completion (or times out) before the next interval
starts; a failed cycle is logged and the next one is attempted as usual.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from .errors import CollectorError

LOGGER = logging.getLogger(__name__)

CycleRunner = Callable[[], Awaitable[Any]]


@dataclass(slots=True)
class CycleStats:
    """Counters describing the scheduler's history."""

    completed: int = 0
    failed: int = 0
    last_error: Optional[str] = None
    last_success_at: Optional[datetime] = None
    consecutive_failures: int = 0


class PollingScheduler:
    """Runs `run_cycle` immediately and then every `interval_seconds`."""

    def __init__(
        self,
        *,
        run_cycle: CycleRunner,
        interval_seconds: float,
        step_timeout_seconds: float,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        self._run_cycle = run_cycle
        self._interval = interval_seconds if interval_seconds > 0 else 60.0
        self._step_timeout = step_timeout_seconds if step_timeout_seconds > 0 else None
        self._stop_event = stop_event or asyncio.Event()
        self._task: Optional[asyncio.Task[None]] = None
        self.stats = CycleStats()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the polling task."""
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        """Stop the polling task."""
        self._stop_event.set()
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def wait(self) -> None:
        """Block until the polling task exits."""
        if self._task is not None:
            await self._task

    async def run_once(self) -> bool:
        """Run a single bounded cycle; return True when it succeeded."""

        try:
            if self._step_timeout is None:
                await self._run_cycle()
            else:
                await asyncio.wait_for(self._run_cycle(), timeout=self._step_timeout)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            self._record_failure(
                f"collection cycle exceeded {self._step_timeout:.1f}s step timeout"
            )
            return False
        except CollectorError as exc:
            self._record_failure(str(exc))
            return False
        except Exception as exc:
            LOGGER.exception("Unexpected error during collection cycle")
            self._record_failure(f"{type(exc).__name__}: {exc}")
            return False

        self.stats.completed += 1
        self.stats.consecutive_failures = 0
        self.stats.last_error = None
        self.stats.last_success_at = datetime.now(timezone.utc)
        return True

    def _record_failure(self, message: str) -> None:
        self.stats.failed += 1
        self.stats.consecutive_failures += 1
        self.stats.last_error = message
        LOGGER.error(
            "Collection cycle failed (%d in a row): %s",
            self.stats.consecutive_failures,
            message,
        )

    async def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            await self.run_once()

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                break  # Stop event was set
            except asyncio.TimeoutError:
                continue
