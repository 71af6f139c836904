"""Shared fixtures: canned hardware records and a fake inspector."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from transceiver_exporter.errors import InspectorInitError
from transceiver_exporter.inspector.base import (
    DriverInfo,
    EepromRecord,
    FeatureStatus,
    HardwareInspector,
    InterfaceHandle,
    InterfaceRecord,
    Laser,
    Measurement,
    PowerClass,
    Thresholds,
)


def measurement(value: float, thresholds: Thresholds | None = None) -> Measurement:
    return Measurement(value, thresholds is not None, thresholds)


def make_eeprom(lasers: list[Laser] | None = None, supports_monitoring: bool = True) -> EepromRecord:
    if lasers is None:
        lasers = [Laser(
            bias=measurement(6.5, Thresholds(13.2, 12.6, 4.0, 5.0)),
            tx_power=measurement(0.5, Thresholds(1.0, 0.8, 0.06, 0.08)),
            rx_power=measurement(1.0, Thresholds(1.0, 0.8, 0.01, 0.016)),
        )]
    return EepromRecord(
        identifier="SFP",
        encoding="64B/66B",
        power_class=PowerClass(1, 1.0),
        signaling_rate=10.3e9,
        supported_link_lengths={"smf": 10000.0, "om3": 300.0},
        vendor_name="FINISAR CORP.",
        vendor_pn="FTLX1471D3BCL",
        vendor_rev="A",
        vendor_sn="ABC1234",
        vendor_oui="00:90:65",
        date_code=datetime(2014, 5, 20, tzinfo=timezone.utc),
        wavelength=1310.0,
        supports_monitoring=supports_monitoring,
        temperature=measurement(35.5, Thresholds(78.0, 73.0, -13.0, -8.0)),
        voltage=measurement(3.3, Thresholds(3.7, 3.6, 2.9, 3.0)),
        lasers=lasers,
    )


def make_record(name: str, **kwargs) -> InterfaceRecord:
    kwargs.setdefault("driver_info", DriverInfo("ixgbe", "5.1.0-k", "0x800006f8", "0000:01:00.0", ""))
    kwargs.setdefault("eeprom", make_eeprom())
    kwargs.setdefault("features", {
        "rx-checksumming": FeatureStatus(available=True, active=True),
        "tx-checksumming": FeatureStatus(available=False, active=True),
    })
    return InterfaceRecord(name=name, **kwargs)


class FakeInspector(HardwareInspector):
    """Serves canned records; an exception in *records* is raised on query."""

    def __init__(self, interfaces, records=None, init_error: Exception | None = None) -> None:
        self.interfaces = list(interfaces)
        self.records = dict(records or {})
        self.init_error = init_error
        self.opened = False
        self.closed = False
        self.queried: list[str] = []

    def open(self) -> None:
        if self.init_error is not None:
            raise self.init_error
        self.opened = True

    def close(self) -> None:
        self.closed = True

    def list_interfaces(self):
        if not self.opened:
            raise InspectorInitError("not opened")
        return self.interfaces

    def query(self, name: str):
        self.queried.append(name)
        record = self.records.get(name)
        if isinstance(record, Exception):
            raise record
        return record


@pytest.fixture
def eth_interfaces():
    return [
        InterfaceHandle("lo", is_loopback=True),
        InterfaceHandle("eth0"),
        InterfaceHandle("eth1"),
        InterfaceHandle("eth2"),
    ]


@pytest.fixture
def eeprom_factory():
    return make_eeprom


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def inspector_factory():
    return FakeInspector
