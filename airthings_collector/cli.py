"""Command-line interface for airthings-collector."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from . import constants
from .app import AirthingsCollectorApp
from .config import OUTPUT_FORMATS, CollectorSettings, load_config
from .errors import CollectorError
from .logging import configure_logging
from .sinks import create_sink

LOGGER = logging.getLogger(__name__)

SECRET_OPTIONS = {"client_secret"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="airthings-collector",
        description="Collect Airthings air quality metrics from the consumer API",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("start", help="Collect metrics every configured interval")

    collect_parser = subparsers.add_parser(
        "collect", help="Run a single collection cycle and print the records"
    )
    collect_parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (default: value of [output] format)",
    )

    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )

    return parser


def _collect_once(config: CollectorSettings, output_format: Optional[str]) -> int:
    configure_logging(
        config.logging.level,
        log_path=config.logging.path,
        log_network=config.logging.log_network,
    )
    sink = create_sink(output_format or config.output.format)

    try:
        app = AirthingsCollectorApp(config, sink=sink)
        count = asyncio.run(app.run_once())
    except CollectorError as exc:
        LOGGER.error("Collection failed: %s", exc)
        return 1

    LOGGER.info("Collected %d device records", count)
    return 0


def _show_config(config: CollectorSettings) -> None:
    print(f"Configuration loaded from {config.path!s}\n")
    for section in config.raw.sections():
        print(f"[{section}]")
        for key, value in config.raw[section].items():
            if key in SECRET_OPTIONS and value:
                value = "********"
            print(f"{key} = {value}")
        print()


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)

    if args.command == "start":
        try:
            AirthingsCollectorApp.start(config)
        except CollectorError as exc:
            LOGGER.error("Unable to start collector: %s", exc)
            return 1
        return 0

    if args.command == "collect":
        return _collect_once(config, args.format)

    if args.command == "show-config":
        _show_config(config)
        return 0

    LOGGER.error("Unknown command: %s", args.command)
    return 1


if __name__ == "__main__":
    sys.exit(main())
