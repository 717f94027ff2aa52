"""Constants used across the airthings-collector package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "airthings-collector"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

DEFAULT_API_URL = "https://ext-api.airthings.com/v1/"
DEFAULT_TOKEN_URL = "https://accounts-api.airthings.com/v1/token"
DEFAULT_SCOPES = ("read:device:current_values",)
DEFAULT_TIMEOUT_SECONDS = 5.0

# The consumer API allows 120 requests per hour.
DEFAULT_INTERVAL_SECONDS = 35.0
DEFAULT_STEP_TIMEOUT_SECONDS = 30.0

DEVICE_ID_PLACEHOLDER = "{serialNumber}"
PATH_DEVICES = "/devices"
PATH_LATEST_SAMPLES = f"/devices/{DEVICE_ID_PLACEHOLDER}/latest-samples"
PATH_DEVICE_DETAILS = f"/devices/{DEVICE_ID_PLACEHOLDER}"

MEASUREMENT_NAME = "airthings_connector"
SOURCE_TAG = "airthings"
