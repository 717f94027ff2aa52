"""Collection cycle orchestration."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional

from .api_client import AirthingsApiClient, build_ssl_context
from .config import AirthingsConfig, TLSConfig
from .devices import DetailFetcher, DeviceEnumerator, SampleFetcher
from .errors import ConfigurationError
from .merger import RecordMerger
from .models import MetricRecord
from .sinks import MetricSink
from .token_manager import TokenManager

LOGGER = logging.getLogger(__name__)


class AirthingsCollector:
    """Runs one collection cycle: token, device list, then per-device fetches.

    Devices are processed strictly sequentially. Any error aborts the cycle
    and nothing collected so far is emitted. Concurrent cycles on the same
    instance are serialised.
    """

    def __init__(
        self,
        *,
        token_manager: TokenManager,
        client: AirthingsApiClient,
        show_inactive: bool = True,
        merger: Optional[RecordMerger] = None,
    ) -> None:
        self.show_inactive = show_inactive
        self._token_manager = token_manager
        self._client = client
        self._merger = merger or RecordMerger()
        self._enumerator = DeviceEnumerator(client)
        self._samples = SampleFetcher(client)
        self._details = DetailFetcher(client)
        self._cycle_lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls, config: AirthingsConfig, tls: Optional[TLSConfig] = None
    ) -> "AirthingsCollector":
        if not config.client_id or not config.client_secret:
            raise ConfigurationError(
                "client_id and client_secret must be set in the [airthings] section"
            )

        token_manager = TokenManager(
            client_id=config.client_id,
            client_secret=config.client_secret,
            token_url=config.token_url,
            scopes=config.scopes,
            timeout=config.timeout_seconds,
        )
        client = AirthingsApiClient(
            config.url,
            timeout=config.timeout_seconds,
            ssl_context=build_ssl_context(tls),
        )
        return cls(
            token_manager=token_manager,
            client=client,
            show_inactive=config.show_inactive,
        )

    async def collect(self) -> List[MetricRecord]:
        """Run a full cycle and return one record per listed device."""

        async with self._cycle_lock:
            started = time.monotonic()
            token = await self._token_manager.get_token()
            devices = await self._enumerator.list_devices(
                token, show_inactive=self.show_inactive
            )

            records: List[MetricRecord] = []
            for device in devices:
                sample = await self._samples.fetch_sample(token, device.id)
                details = await self._details.fetch_details(token, device.id)
                records.append(self._merger.merge(device, sample, details))
                LOGGER.debug(
                    "Merged device %s (%s): %d fields",
                    device.id,
                    device.device_type,
                    len(records[-1].fields),
                )

            LOGGER.info(
                "Collection cycle finished: %d devices in %.2fs",
                len(records),
                time.monotonic() - started,
            )
            return records

    async def gather(self, sink: MetricSink) -> int:
        """Collect a full cycle, then hand every record to the sink."""

        records = await self.collect()
        for record in records:
            sink.add_metric(record)
        return len(records)

    async def aclose(self) -> None:
        await self._client.aclose()
        await self._token_manager.aclose()
