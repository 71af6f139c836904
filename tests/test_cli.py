"""Tests for the command line entry point."""

import pytest
from prometheus_client.parser import text_string_to_metric_families

from transceiver_exporter import __version__
from transceiver_exporter.cli import _overrides_from_args, build_parser, main
from transceiver_exporter.collector.manager import CollectorManager
from transceiver_exporter.errors import InspectorInitError


@pytest.fixture
def no_config(tmp_path):
    return ["--config", str(tmp_path / "missing.yaml")]


@pytest.fixture
def fake_hardware(monkeypatch, eth_interfaces, inspector_factory, record_factory):
    def install(records=None, init_error=None):
        if records is None:
            records = {"eth0": record_factory("eth0"), "eth1": record_factory("eth1")}
        monkeypatch.setattr(
            CollectorManager, "_default_inspector",
            lambda self: inspector_factory(eth_interfaces, records, init_error),
        )
    return install


def test_version(capsys):
    main(["--version"])
    out = capsys.readouterr().out
    assert "transceiver-exporter" in out
    assert f"Version: {__version__}" in out


def test_flags_become_overrides():
    args = build_parser().parse_args([
        "--web.listen-address", ":9100",
        "--no-collector.interface-features.enable",
        "--collector.optical-power-in-dbm",
        "--exclude.interfaces", "eth0,eth1",
        "--exclude.interfaces-down",
    ])
    assert _overrides_from_args(args) == {
        "web": {"listen_address": ":9100"},
        "collector": {"interface_features": False, "power_unit_dbm": True},
        "filters": {"exclude_interfaces": "eth0,eth1", "exclude_interfaces_down": True},
    }


def test_unset_flags_are_not_overrides():
    assert _overrides_from_args(build_parser().parse_args([])) == {}


def test_conflicting_filters_exit_before_serving(no_config):
    with pytest.raises(SystemExit) as excinfo:
        main(no_config + ["--exclude.interfaces", "eth0", "--include.interfaces", "eth1"])
    assert excinfo.value.code == 2


def test_invalid_listen_address_exits(no_config):
    with pytest.raises(SystemExit) as excinfo:
        main(no_config + ["--web.listen-address", "nowhere"])
    assert excinfo.value.code == 2


def test_once_prints_metrics(no_config, fake_hardware, capsys):
    fake_hardware()
    main(no_config + ["--once", "--exclude.interfaces", "eth1"])
    text = capsys.readouterr().out
    families = {f.name: f for f in text_string_to_metric_families(text)}
    interfaces = {s.labels["interface"] for s in families["transceiver_vendor_name_info"].samples}
    assert interfaces == {"eth0"}


def test_once_in_dbm(no_config, fake_hardware, capsys):
    fake_hardware()
    main(no_config + ["--once", "--collector.optical-power-in-dbm"])
    text = capsys.readouterr().out
    assert "transceiver_laser_rx_power_dbm" in text
    assert "transceiver_laser_rx_power_milliwatts" not in text


def test_once_fatal_scrape_exits(no_config, fake_hardware):
    fake_hardware(init_error=InspectorInitError("ethtool not found"))
    with pytest.raises(SystemExit) as excinfo:
        main(no_config + ["--once"])
    assert excinfo.value.code == 1
