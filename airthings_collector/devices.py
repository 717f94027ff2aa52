"""Device enumeration and per-device sample/detail retrieval."""

from __future__ import annotations

import json
import logging
from typing import Any, List

from . import constants
from .api_client import AirthingsApiClient
from .errors import DecodeError, MissingFieldError
from .models import DetailRecord, DeviceListEntry, SampleRecord
from .token_manager import TokenCredentials

LOGGER = logging.getLogger(__name__)


def device_path(template: str, device_id: str) -> str:
    return template.replace(constants.DEVICE_ID_PLACEHOLDER, device_id, 1)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def decode_json(body: bytes, *, source: str) -> Any:
    try:
        return json.loads(body, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError) as exc:
        raise DecodeError(f"Malformed JSON from {source}: {exc}") from exc


def _require_object(payload: Any, *, source: str) -> dict:
    if not isinstance(payload, dict):
        raise DecodeError(
            f"Expected JSON object from {source}, got {type(payload).__name__}"
        )
    return payload


class DeviceEnumerator:
    """Fetches the device list for the account."""

    def __init__(self, client: AirthingsApiClient) -> None:
        self._client = client

    async def list_devices(
        self, token: TokenCredentials, *, show_inactive: bool
    ) -> List[DeviceListEntry]:
        """Return devices in the order the API lists them."""

        body = await self._client.request(
            constants.PATH_DEVICES,
            token,
            params={"showInactive": "true" if show_inactive else "false"},
        )
        payload = _require_object(
            decode_json(body, source="device list"), source="device list"
        )

        devices = payload.get("devices")
        if devices is None:
            return []
        if not isinstance(devices, list):
            raise DecodeError(
                f"Expected 'devices' to be a list, got {type(devices).__name__}"
            )

        entries = [DeviceListEntry.from_payload(item) for item in devices]
        LOGGER.debug("Device list returned %d devices", len(entries))
        return entries


class SampleFetcher:
    """Fetches the latest sensor sample of a device."""

    def __init__(self, client: AirthingsApiClient) -> None:
        self._client = client

    async def fetch_sample(
        self, token: TokenCredentials, device_id: str
    ) -> SampleRecord:
        source = f"sensor {device_id}"
        body = await self._client.request(
            device_path(constants.PATH_LATEST_SAMPLES, device_id), token
        )
        payload = _require_object(decode_json(body, source=source), source=source)

        if "data" not in payload:
            raise MissingFieldError("data", device_id)
        data = payload["data"]
        if not isinstance(data, dict):
            raise DecodeError(
                f"Expected 'data' object from {source}, got {type(data).__name__}"
            )

        return SampleRecord.from_data(data, device_id=device_id)


class DetailFetcher:
    """Fetches the detail record of a device. An empty object is valid."""

    def __init__(self, client: AirthingsApiClient) -> None:
        self._client = client

    async def fetch_details(
        self, token: TokenCredentials, device_id: str
    ) -> DetailRecord:
        source = f"device {device_id} details"
        body = await self._client.request(
            device_path(constants.PATH_DEVICE_DETAILS, device_id), token
        )
        payload = _require_object(decode_json(body, source=source), source=source)
        return DetailRecord(attributes=dict(payload))
