"""Configuration loader for airthings-collector."""

from __future__ import annotations

from configparser import ConfigParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from . import constants

OUTPUT_FORMATS = ("line", "json")


@dataclass(slots=True)
class AirthingsConfig:
    url: str = constants.DEFAULT_API_URL
    show_inactive: bool = True
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    token_url: str = constants.DEFAULT_TOKEN_URL
    scopes: List[str] = field(default_factory=lambda: list(constants.DEFAULT_SCOPES))
    timeout_seconds: float = constants.DEFAULT_TIMEOUT_SECONDS


@dataclass(slots=True)
class TLSConfig:
    ca_path: Optional[Path] = None
    cert_path: Optional[Path] = None
    key_path: Optional[Path] = None
    insecure_skip_verify: bool = False

    @property
    def enabled(self) -> bool:
        return bool(
            self.ca_path or self.cert_path or self.key_path or self.insecure_skip_verify
        )


@dataclass(slots=True)
class CollectorConfig:
    interval_seconds: float = constants.DEFAULT_INTERVAL_SECONDS
    step_timeout_seconds: float = constants.DEFAULT_STEP_TIMEOUT_SECONDS


@dataclass(slots=True)
class OutputConfig:
    format: str = "line"


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = None
    log_network: bool = False


@dataclass(slots=True)
class CollectorSettings:
    airthings: AirthingsConfig
    tls: TLSConfig
    collector: CollectorConfig
    output: OutputConfig
    logging: LoggingConfig
    raw: ConfigParser
    path: Path


def _parse_list(value: str, *, default: Iterable[str]) -> List[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def _optional_path(parser: ConfigParser, section: str, option: str) -> Optional[Path]:
    value = parser.get(section, option, fallback="").strip()
    if not value:
        return None
    return Path(value).expanduser()


def _positive_float(
    parser: ConfigParser, section: str, option: str, *, default: float
) -> float:
    try:
        value = parser.getfloat(section, option, fallback=default)
    except ValueError:
        return default
    return value if value > 0 else default


def load_config(path: Optional[Path] = None) -> CollectorSettings:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "airthings": {
                "url": constants.DEFAULT_API_URL,
                "show_inactive": "true",
                "token_url": constants.DEFAULT_TOKEN_URL,
                "scopes": ",".join(constants.DEFAULT_SCOPES),
                "timeout_seconds": str(constants.DEFAULT_TIMEOUT_SECONDS),
            },
            "tls": {
                "insecure_skip_verify": "false",
            },
            "collector": {
                "interval_seconds": str(constants.DEFAULT_INTERVAL_SECONDS),
                "step_timeout_seconds": str(constants.DEFAULT_STEP_TIMEOUT_SECONDS),
            },
            "output": {
                "format": "line",
            },
            "logging": {
                "level": "INFO",
                "log_network": "false",
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    airthings = AirthingsConfig(
        url=parser.get("airthings", "url"),
        show_inactive=parser.getboolean("airthings", "show_inactive", fallback=True),
        client_id=parser.get("airthings", "client_id", fallback=None) or None,
        client_secret=parser.get("airthings", "client_secret", fallback=None) or None,
        token_url=parser.get("airthings", "token_url"),
        scopes=_parse_list(
            parser.get("airthings", "scopes", fallback=""),
            default=constants.DEFAULT_SCOPES,
        ),
        timeout_seconds=_positive_float(
            parser,
            "airthings",
            "timeout_seconds",
            default=constants.DEFAULT_TIMEOUT_SECONDS,
        ),
    )

    tls = TLSConfig(
        ca_path=_optional_path(parser, "tls", "tls_ca"),
        cert_path=_optional_path(parser, "tls", "tls_cert"),
        key_path=_optional_path(parser, "tls", "tls_key"),
        insecure_skip_verify=parser.getboolean(
            "tls", "insecure_skip_verify", fallback=False
        ),
    )

    collector = CollectorConfig(
        interval_seconds=_positive_float(
            parser,
            "collector",
            "interval_seconds",
            default=constants.DEFAULT_INTERVAL_SECONDS,
        ),
        step_timeout_seconds=_positive_float(
            parser,
            "collector",
            "step_timeout_seconds",
            default=constants.DEFAULT_STEP_TIMEOUT_SECONDS,
        ),
    )

    output_format = parser.get("output", "format", fallback="line").strip().lower()
    if output_format not in OUTPUT_FORMATS:
        output_format = "line"

    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=_optional_path(parser, "logging", "path"),
        log_network=parser.getboolean("logging", "log_network", fallback=False),
    )

    return CollectorSettings(
        airthings=airthings,
        tls=tls,
        collector=collector,
        output=OutputConfig(format=output_format),
        logging=logging_config,
        raw=parser,
        path=config_path,
    )
