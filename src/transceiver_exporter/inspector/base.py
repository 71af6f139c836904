"""Read interface to the hardware inspector and the records it returns."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from datetime import datetime

from ..errors import MeasurementError


@dataclass(frozen=True)
class InterfaceHandle:
    """A network interface as enumerated by the operating system."""

    name: str
    is_loopback: bool = False
    is_admin_up: bool = True

    @property
    def is_admin_down(self) -> bool:
        return not self.is_admin_up


@dataclass(frozen=True)
class DriverInfo:
    """Driver identification of an interface, as reported by ``ethtool -i``."""

    driver_name: str = ""
    driver_version: str = ""
    firmware_version: str = ""
    bus_info: str = ""
    expansion_rom_version: str = ""


@dataclass(frozen=True)
class FeatureStatus:
    available: bool
    active: bool


@dataclass(frozen=True)
class Thresholds:
    high_alarm: float
    high_warning: float
    low_alarm: float
    low_warning: float


@dataclass
class Measurement:
    """A DOM reading in its native unit, with optional alarm thresholds."""

    value: float
    supports_thresholds: bool = False
    thresholds: Thresholds | None = None

    def alarm_thresholds(self) -> Thresholds:
        """Return the threshold set, or raise if the module did not provide it."""
        if not self.supports_thresholds or self.thresholds is None:
            raise MeasurementError("alarm thresholds are not available")
        return self.thresholds


@dataclass
class PowerClass:
    ordinal: int
    max_power: float


@dataclass
class Laser:
    """Monitoring data of one laser (channel) of a module."""

    bias: Measurement | None = None
    tx_power: Measurement | None = None
    rx_power: Measurement | None = None
    monitoring: bool | None = None

    @property
    def supports_monitoring(self) -> bool:
        if self.monitoring is not None:
            return self.monitoring
        return any(m is not None for m in (self.bias, self.tx_power, self.rx_power))

    def get_bias(self) -> Measurement:
        return _require(self.bias, "laser bias current")

    def get_tx_power(self) -> Measurement:
        return _require(self.tx_power, "laser tx power")

    def get_rx_power(self) -> Measurement:
        return _require(self.rx_power, "laser rx power")


@dataclass
class EepromRecord:
    """Identity and diagnostics decoded from a transceiver's EEPROM."""

    identifier: str = ""
    encoding: str = ""
    power_class: PowerClass = field(default_factory=lambda: PowerClass(1, 1.0))
    signaling_rate: float = 0.0
    supported_link_lengths: dict[str, float] = field(default_factory=dict)
    vendor_name: str = ""
    vendor_pn: str = ""
    vendor_rev: str = ""
    vendor_sn: str = ""
    vendor_oui: str = ""
    date_code: datetime | None = None
    wavelength: float = 0.0
    supports_monitoring: bool = False
    temperature: Measurement | None = None
    voltage: Measurement | None = None
    lasers: list[Laser] = field(default_factory=list)

    def get_module_temperature(self) -> Measurement:
        return _require(self.temperature, "module temperature")

    def get_module_voltage(self) -> Measurement:
        return _require(self.voltage, "module voltage")

    def date_code_unix(self) -> float:
        if self.date_code is None:
            return 0.0
        return float(int(self.date_code.timestamp()))


@dataclass
class InterfaceRecord:
    """Everything the inspector could read about one interface."""

    name: str
    driver_info: DriverInfo | None = None
    eeprom: EepromRecord | None = None
    features: dict[str, FeatureStatus] | None = None
    features_error: Exception | None = None


def _require(measurement: Measurement | None, what: str) -> Measurement:
    if measurement is None:
        raise MeasurementError(f"{what} could not be read")
    return measurement


class HardwareInspector(abc.ABC):
    """Abstract read-only access to interfaces and their transceivers.

    One instance serves one scrape: it is opened, queried once per selected
    interface and closed again.
    """

    def open(self) -> None:
        """Acquire the underlying capability. Raises :class:`InspectorInitError`."""

    def close(self) -> None:
        """Release whatever :meth:`open` acquired."""

    def __enter__(self) -> HardwareInspector:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @abc.abstractmethod
    def list_interfaces(self) -> list[InterfaceHandle]:
        """Enumerate the host's interfaces in system order."""

    @abc.abstractmethod
    def query(self, name: str) -> InterfaceRecord | None:
        """Read driver, feature and EEPROM data of *name*.

        Returns ``None`` when the interface vanished since enumeration and
        raises :class:`InterfaceQueryError` when it cannot be read.
        """
