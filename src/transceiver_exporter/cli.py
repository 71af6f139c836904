"""CLI interface for transceiver_exporter."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from prometheus_client import CollectorRegistry, generate_latest

from . import __version__
from .config import ExporterConfig, load_config
from .errors import ConfigurationError, ScrapeError

logger = logging.getLogger(__name__)

# flag dest -> (config section, key)
_OVERRIDES = {
    "listen_address": ("web", "listen_address"),
    "telemetry_path": ("web", "telemetry_path"),
    "interface_features": ("collector", "interface_features"),
    "power_unit_dbm": ("collector", "power_unit_dbm"),
    "ethtool_path": ("collector", "ethtool_path"),
    "exclude_interfaces": ("filters", "exclude_interfaces"),
    "include_interfaces": ("filters", "include_interfaces"),
    "exclude_interfaces_regex": ("filters", "exclude_interfaces_regex"),
    "include_interfaces_regex": ("filters", "include_interfaces_regex"),
    "exclude_interfaces_down": ("filters", "exclude_interfaces_down"),
}


def _overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    """Collect the flags that were given on the command line."""
    overrides: dict[str, Any] = {}
    for dest, (section, key) in _OVERRIDES.items():
        value = getattr(args, dest, None)
        if value is not None:
            overrides.setdefault(section, {})[key] = value
    return overrides


def _cmd_once(registry: CollectorRegistry) -> None:
    """Perform a single scrape and print the exposition text."""
    try:
        output = generate_latest(registry)
    except ScrapeError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    sys.stdout.write(output.decode("utf-8"))


def _cmd_serve(cfg: ExporterConfig, registry: CollectorRegistry) -> None:
    """Serve scrapes over HTTP until interrupted."""
    from .exporter.prometheus import serve

    logger.info("Starting transceiver-exporter (version: %s)", __version__)
    try:
        serve(cfg.web, registry)
    except KeyboardInterrupt:
        logger.info("Shutting down")


def _print_version() -> None:
    print("transceiver-exporter")
    print(f"Version: {__version__}")
    print("Metrics Exporter for pluggable transceivers on Linux based hosts / switches")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="transceiver-exporter",
        description="Expose optical transceiver diagnostics as Prometheus metrics",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to transceiver_exporter.yaml")
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    parser.add_argument("--once", action="store_true", help="Scrape once, print metrics and exit")
    parser.add_argument("--log-level", default="info", choices=["debug", "info", "warning", "error"],
                        help="Logging verbosity")

    parser.add_argument("--web.listen-address", dest="listen_address", default=None,
                        help="Address to listen on (default [::]:9458)")
    parser.add_argument("--web.telemetry-path", dest="telemetry_path", default=None,
                        help="Path under which to expose metrics (default /metrics)")

    parser.add_argument("--collector.interface-features.enable", dest="interface_features",
                        action=argparse.BooleanOptionalAction, default=None,
                        help="Collect interface features")
    parser.add_argument("--collector.optical-power-in-dbm", dest="power_unit_dbm",
                        action=argparse.BooleanOptionalAction, default=None,
                        help="Report optical powers in dBm instead of mW")
    parser.add_argument("--collector.ethtool-path", dest="ethtool_path", default=None,
                        help="ethtool binary to run")

    parser.add_argument("--exclude.interfaces", dest="exclude_interfaces", default=None,
                        help="Comma separated list of interfaces to exclude")
    parser.add_argument("--include.interfaces", dest="include_interfaces", default=None,
                        help="Comma separated list of interfaces to include")
    parser.add_argument("--exclude.interfaces-regex", dest="exclude_interfaces_regex", default=None,
                        help="Regex of interfaces to exclude")
    parser.add_argument("--include.interfaces-regex", dest="include_interfaces_regex", default=None,
                        help="Regex of interfaces to include")
    parser.add_argument("--exclude.interfaces-down", dest="exclude_interfaces_down",
                        action=argparse.BooleanOptionalAction, default=None,
                        help="Don't report on interfaces being management DOWN")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the transceiver-exporter CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.version:
        _print_version()
        return

    from .collector.manager import CollectorManager
    from .exporter.prometheus import build_registry, parse_listen_address

    try:
        cfg = load_config(args.config, _overrides_from_args(args))
        cfg.filters.validate()
        parse_listen_address(cfg.web.listen_address)
    except ConfigurationError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(2)

    manager = CollectorManager(cfg.collector, cfg.filters)
    registry = build_registry(manager)

    if args.once:
        _cmd_once(registry)
    else:
        _cmd_serve(cfg, registry)


if __name__ == "__main__":
    main()
