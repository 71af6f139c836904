"""Configuration loading and validation for transceiver_exporter."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import yaml

from .errors import ConfigurationError


@dataclass
class WebConfig:
    """HTTP listener settings."""

    listen_address: str = "[::]:9458"
    telemetry_path: str = "/metrics"


@dataclass
class CollectorConfig:
    """What is collected and how optical power is reported."""

    interface_features: bool = True
    power_unit_dbm: bool = False
    ethtool_path: str = "ethtool"
    command_timeout_seconds: float = 5.0


def _split_names(value: str | Iterable[str] | None) -> frozenset[str]:
    """Split a comma separated list (or YAML list) into trimmed, non-empty names."""
    if value is None:
        return frozenset()
    if isinstance(value, str):
        value = value.split(",")
    return frozenset(name.strip() for name in value if name and name.strip())


def _compile(pattern: str | None, option: str) -> re.Pattern[str] | None:
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigurationError(f"Invalid regular expression for {option}: {exc}") from exc


@dataclass(frozen=True)
class FilterConfig:
    """Which interfaces a scrape looks at.

    Name lists are matched by exact equality, patterns with ``re.search``.
    Excluding and including by name at the same time is rejected by
    :meth:`validate`.
    """

    exclude_names: frozenset[str] = frozenset()
    include_names: frozenset[str] = frozenset()
    exclude_pattern: re.Pattern[str] | None = None
    include_pattern: re.Pattern[str] | None = None
    exclude_admin_down: bool = False

    @classmethod
    def from_values(
        cls,
        exclude_interfaces: str | Iterable[str] | None = None,
        include_interfaces: str | Iterable[str] | None = None,
        exclude_interfaces_regex: str | None = None,
        include_interfaces_regex: str | None = None,
        exclude_interfaces_down: bool = False,
    ) -> FilterConfig:
        return cls(
            exclude_names=_split_names(exclude_interfaces),
            include_names=_split_names(include_interfaces),
            exclude_pattern=_compile(exclude_interfaces_regex, "exclude.interfaces-regex"),
            include_pattern=_compile(include_interfaces_regex, "include.interfaces-regex"),
            exclude_admin_down=bool(exclude_interfaces_down),
        )

    def validate(self) -> None:
        if self.exclude_names and self.include_names:
            raise ConfigurationError("Cannot include and exclude interfaces at the same time")


@dataclass
class ExporterConfig:
    """Top-level transceiver_exporter configuration."""

    web: WebConfig = field(default_factory=WebConfig)
    collector: CollectorConfig = field(default_factory=CollectorConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)


_BOOL_KEYS = {"interface_features", "power_unit_dbm", "exclude_interfaces_down"}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _merge_dict(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *source* into *target*."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge_dict(target[key], value)
        else:
            target[key] = value
    return target


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using TRANSCEIVER_EXPORTER_ prefix."""
    env_map = {
        "TRANSCEIVER_EXPORTER_LISTEN_ADDRESS": ("web", "listen_address"),
        "TRANSCEIVER_EXPORTER_TELEMETRY_PATH": ("web", "telemetry_path"),
        "TRANSCEIVER_EXPORTER_INTERFACE_FEATURES": ("collector", "interface_features"),
        "TRANSCEIVER_EXPORTER_POWER_UNIT_DBM": ("collector", "power_unit_dbm"),
        "TRANSCEIVER_EXPORTER_ETHTOOL_PATH": ("collector", "ethtool_path"),
        "TRANSCEIVER_EXPORTER_EXCLUDE_INTERFACES": ("filters", "exclude_interfaces"),
        "TRANSCEIVER_EXPORTER_INCLUDE_INTERFACES": ("filters", "include_interfaces"),
        "TRANSCEIVER_EXPORTER_EXCLUDE_INTERFACES_REGEX": ("filters", "exclude_interfaces_regex"),
        "TRANSCEIVER_EXPORTER_INCLUDE_INTERFACES_REGEX": ("filters", "include_interfaces_regex"),
        "TRANSCEIVER_EXPORTER_EXCLUDE_INTERFACES_DOWN": ("filters", "exclude_interfaces_down"),
    }
    for env_key, path in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            obj = data
            for part in path[:-1]:
                obj = obj.setdefault(part, {})
            final_key = path[-1]
            if final_key in _BOOL_KEYS:
                obj[final_key] = _parse_bool(value)
            else:
                obj[final_key] = value
    return data


def _dict_to_config(data: dict[str, Any]) -> ExporterConfig:
    """Convert a raw dictionary to an ExporterConfig dataclass."""
    web_data = data.get("web") or {}
    collector_data = data.get("collector") or {}
    filter_data = data.get("filters") or {}

    return ExporterConfig(
        web=WebConfig(**{
            k: v for k, v in web_data.items()
            if k in WebConfig.__dataclass_fields__
        }),
        collector=CollectorConfig(**{
            k: v for k, v in collector_data.items()
            if k in CollectorConfig.__dataclass_fields__
        }),
        filters=FilterConfig.from_values(
            exclude_interfaces=filter_data.get("exclude_interfaces"),
            include_interfaces=filter_data.get("include_interfaces"),
            exclude_interfaces_regex=filter_data.get("exclude_interfaces_regex"),
            include_interfaces_regex=filter_data.get("include_interfaces_regex"),
            exclude_interfaces_down=filter_data.get("exclude_interfaces_down", False),
        ),
    )


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ExporterConfig:
    """Load configuration from a YAML file with environment and CLI overrides.

    Looks for ``transceiver_exporter.yaml`` in the current directory if *path*
    is None. *overrides* (typically parsed command line flags) win over both
    the file and the environment.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("transceiver_exporter.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = loaded

    data = _apply_env_overrides(data)
    if overrides:
        data = _merge_dict(data, overrides)
    return _dict_to_config(data)
