"""Tests for the configuration module."""

import os
import tempfile

import pytest
import yaml

from transceiver_exporter.config import (
    ExporterConfig,
    FilterConfig,
    load_config,
)
from transceiver_exporter.errors import ConfigurationError


def _write_yaml(data):
    with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as fh:
        yaml.dump(data, fh)
        return fh.name


def test_load_config_defaults():
    """Loading from a non-existent file returns defaults."""
    cfg = load_config("/tmp/nonexistent_transceiver_exporter.yaml")
    assert isinstance(cfg, ExporterConfig)
    assert cfg.web.listen_address == "[::]:9458"
    assert cfg.web.telemetry_path == "/metrics"
    assert cfg.collector.interface_features is True
    assert cfg.collector.power_unit_dbm is False
    assert cfg.collector.ethtool_path == "ethtool"
    assert cfg.filters == FilterConfig()


def test_load_config_from_yaml():
    """Loading from a YAML file populates values."""
    path = _write_yaml({
        "web": {"listen_address": "127.0.0.1:9100"},
        "collector": {"power_unit_dbm": True, "interface_features": False},
        "filters": {
            "exclude_interfaces": ["eth1", "eth2"],
            "include_interfaces_regex": "^(eth|swp)",
            "exclude_interfaces_down": True,
        },
    })
    try:
        cfg = load_config(path)
        assert cfg.web.listen_address == "127.0.0.1:9100"
        assert cfg.web.telemetry_path == "/metrics"
        assert cfg.collector.power_unit_dbm is True
        assert cfg.collector.interface_features is False
        assert cfg.filters.exclude_names == frozenset({"eth1", "eth2"})
        assert cfg.filters.include_pattern.pattern == "^(eth|swp)"
        assert cfg.filters.exclude_admin_down is True
    finally:
        os.unlink(path)


def test_unknown_keys_are_ignored():
    path = _write_yaml({"web": {"listen_address": ":9458", "tls": True}, "other": 1})
    try:
        assert load_config(path).web.listen_address == ":9458"
    finally:
        os.unlink(path)


def test_env_override():
    """Environment variables override YAML values."""
    path = _write_yaml({"web": {"telemetry_path": "/metrics"}})
    try:
        os.environ["TRANSCEIVER_EXPORTER_TELEMETRY_PATH"] = "/transceivers"
        os.environ["TRANSCEIVER_EXPORTER_POWER_UNIT_DBM"] = "yes"
        os.environ["TRANSCEIVER_EXPORTER_EXCLUDE_INTERFACES"] = "eth0,eth1"
        cfg = load_config(path)
        assert cfg.web.telemetry_path == "/transceivers"
        assert cfg.collector.power_unit_dbm is True
        assert cfg.filters.exclude_names == frozenset({"eth0", "eth1"})
    finally:
        os.environ.pop("TRANSCEIVER_EXPORTER_TELEMETRY_PATH", None)
        os.environ.pop("TRANSCEIVER_EXPORTER_POWER_UNIT_DBM", None)
        os.environ.pop("TRANSCEIVER_EXPORTER_EXCLUDE_INTERFACES", None)
        os.unlink(path)


def test_env_bool_false(monkeypatch):
    monkeypatch.setenv("TRANSCEIVER_EXPORTER_INTERFACE_FEATURES", "off")
    cfg = load_config("/tmp/nonexistent_transceiver_exporter.yaml")
    assert cfg.collector.interface_features is False


def test_overrides_win(monkeypatch):
    """Command line overrides beat both the file and the environment."""
    path = _write_yaml({"web": {"listen_address": ":1111"}, "filters": {"exclude_interfaces": "eth0"}})
    monkeypatch.setenv("TRANSCEIVER_EXPORTER_LISTEN_ADDRESS", ":2222")
    try:
        cfg = load_config(path, {"web": {"listen_address": ":3333"}, "filters": {"exclude_interfaces": "eth5"}})
        assert cfg.web.listen_address == ":3333"
        assert cfg.filters.exclude_names == frozenset({"eth5"})
    finally:
        os.unlink(path)


def test_conflicting_name_lists_load_but_do_not_validate():
    path = _write_yaml({"filters": {"exclude_interfaces": "eth0", "include_interfaces": "eth1"}})
    try:
        cfg = load_config(path)
        with pytest.raises(ConfigurationError, match="Cannot include and exclude"):
            cfg.filters.validate()
    finally:
        os.unlink(path)


def test_invalid_regex_in_file():
    path = _write_yaml({"filters": {"exclude_interfaces_regex": "[eth"}})
    try:
        with pytest.raises(ConfigurationError):
            load_config(path)
    finally:
        os.unlink(path)


def test_empty_file_gives_defaults():
    with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as fh:
        path = fh.name
    try:
        assert load_config(path) == ExporterConfig()
    finally:
        os.unlink(path)
