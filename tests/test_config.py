from pathlib import Path

from airthings_collector import constants
from airthings_collector.config import load_config


def test_load_config_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "airthings-collector.cfg"
    config = load_config(config_path)

    assert config.path == config_path
    assert config.airthings.url == "https://ext-api.airthings.com/v1/"
    assert config.airthings.show_inactive is True
    assert config.airthings.client_id is None
    assert config.airthings.client_secret is None
    assert config.airthings.token_url == "https://accounts-api.airthings.com/v1/token"
    assert config.airthings.scopes == ["read:device:current_values"]
    assert config.airthings.timeout_seconds == 5.0
    assert config.tls.enabled is False
    assert config.collector.interval_seconds == constants.DEFAULT_INTERVAL_SECONDS
    assert config.collector.step_timeout_seconds == 30.0
    assert config.output.format == "line"
    assert config.logging.level == "INFO"
    assert config.logging.path is None


def test_load_config_overrides_defaults(tmp_path: Path) -> None:
    config_file = tmp_path / "airthings-collector.cfg"
    config_file.write_text(
        """
[airthings]
url = https://example.com/v1/
show_inactive = false
client_id = my-client
client_secret = s3cret
scopes = read:device, read:device:current_values
timeout_seconds = 12

[tls]
tls_ca = ~/certs/ca.pem
insecure_skip_verify = true

[collector]
interval_seconds = 120
step_timeout_seconds = 45

[output]
format = JSON

[logging]
level = DEBUG
path = /tmp/airthings.log
"""
    )

    config = load_config(config_file)

    assert config.airthings.url == "https://example.com/v1/"
    assert config.airthings.show_inactive is False
    assert config.airthings.client_id == "my-client"
    assert config.airthings.client_secret == "s3cret"
    assert config.airthings.scopes == ["read:device", "read:device:current_values"]
    assert config.airthings.timeout_seconds == 12.0
    assert config.tls.ca_path == Path("~/certs/ca.pem").expanduser()
    assert config.tls.insecure_skip_verify is True
    assert config.tls.enabled is True
    assert config.collector.interval_seconds == 120.0
    assert config.collector.step_timeout_seconds == 45.0
    assert config.output.format == "json"
    assert config.logging.level == "DEBUG"
    assert config.logging.path == Path("/tmp/airthings.log")


def test_load_config_falls_back_on_invalid_values(tmp_path: Path) -> None:
    config_file = tmp_path / "airthings-collector.cfg"
    config_file.write_text(
        """
[airthings]
timeout_seconds = soon
scopes =

[collector]
interval_seconds = -5

[output]
format = xml
"""
    )

    config = load_config(config_file)

    assert config.airthings.timeout_seconds == 5.0
    assert config.airthings.scopes == ["read:device:current_values"]
    assert config.collector.interval_seconds == constants.DEFAULT_INTERVAL_SECONDS
    assert config.output.format == "line"
