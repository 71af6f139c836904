"""Catalog of every metric the exporter can report.

The catalog is built once from configuration and never changes afterwards,
so it can be shared by concurrent scrapes. The optical power unit is a
tagged variant: a catalog holds either the milliwatt or the dBm descriptors
for laser tx/rx power, never both.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Union

from ..units import milliwatts_to_dbm
from .base import Descriptor

PREFIX = "transceiver_"

INTERFACE_LABELS = ("interface",)
LASER_LABELS = ("interface", "laser_index")

_THRESHOLDS = (
    ("high_alarm", "High alarm"),
    ("high_warning", "High warning"),
    ("low_alarm", "Low alarm"),
    ("low_warning", "Low warning"),
)


def _desc(key: str, name: str, help_text: str, label_names: tuple[str, ...] = INTERFACE_LABELS) -> Descriptor:
    return Descriptor(key, PREFIX + name, help_text, label_names)


@dataclass(frozen=True)
class MeasurementDescriptors:
    """The six descriptors of one measurement: value, support flag, thresholds."""

    value: Descriptor
    supports_thresholds: Descriptor
    high_alarm: Descriptor
    high_warning: Descriptor
    low_alarm: Descriptor
    low_warning: Descriptor

    def __iter__(self) -> Iterator[Descriptor]:
        yield self.value
        yield self.supports_thresholds
        yield self.high_alarm
        yield self.high_warning
        yield self.low_alarm
        yield self.low_warning


def _measurement(
    key: str,
    name: str,
    label_names: tuple[str, ...],
    value_help: str,
    subject: str,
    supports_subject: str,
    value_unit: str,
    threshold_unit: str,
    unit_help: str,
) -> MeasurementDescriptors:
    thresholds = {
        attr: _desc(
            f"{key}_{attr}_threshold",
            f"{name}_{attr}_threshold_{threshold_unit}",
            f"{title} threshold for {subject} in {unit_help}",
            label_names,
        )
        for attr, title in _THRESHOLDS
    }
    return MeasurementDescriptors(
        value=_desc(key, f"{name}_{value_unit}", value_help, label_names),
        supports_thresholds=_desc(
            f"{key}_supports_thresholds",
            f"{name}_supports_thresholds_bool",
            f"1 if thresholds for {supports_subject} are supported",
            label_names,
        ),
        **thresholds,
    )


def _light_level(direction: str, unit: str, unit_help: str) -> MeasurementDescriptors:
    return _measurement(
        f"laser_{direction}_power",
        f"laser_{direction}_power",
        LASER_LABELS,
        f"Laser {direction} power in {unit_help}",
        f"the laser {direction} power",
        f"the laser {direction} power",
        unit,
        unit,
        unit_help,
    )


@dataclass(frozen=True)
class MilliwattPower:
    """Optical power reported in its native milliwatts."""

    tx: MeasurementDescriptors = field(default_factory=lambda: _light_level("tx", "milliwatts", "milliwatts"))
    rx: MeasurementDescriptors = field(default_factory=lambda: _light_level("rx", "milliwatts", "milliwatts"))

    @staticmethod
    def convert(mw: float) -> float:
        return mw


@dataclass(frozen=True)
class DbmPower:
    """Optical power converted to decibel-milliwatts."""

    tx: MeasurementDescriptors = field(default_factory=lambda: _light_level("tx", "dbm", "dBm"))
    rx: MeasurementDescriptors = field(default_factory=lambda: _light_level("rx", "dbm", "dBm"))

    @staticmethod
    def convert(mw: float) -> float:
        return milliwatts_to_dbm(mw)


PowerUnit = Union[MilliwattPower, DbmPower]


def power_unit(dbm: bool) -> PowerUnit:
    return DbmPower() if dbm else MilliwattPower()


DRIVER_DESCRIPTORS = (
    _desc("driver_name", "driver_name_info", "Driver name", ("interface", "driver_name")),
    _desc("driver_version", "driver_version_info", "Driver version", ("interface", "driver_version")),
    _desc("firmware_version", "firmware_version_info", "Firmware version", ("interface", "firmware_version")),
    _desc("bus_info", "bus_info", "Bus information", ("interface", "bus_information")),
    _desc("expansion_rom_version", "expansion_rom_version_info", "Expansion ROM Version",
          ("interface", "expansion_rom_version")),
)

FEATURE_DESCRIPTORS = (
    _desc("interface_feature_active", "interface_feature_active",
          "Interfaces features as reported by interface driver. 1 if active.", ("interface", "feature_name")),
    _desc("interface_feature_available", "interface_feature_available",
          "Interfaces features as reported by interface driver. 1 if available.", ("interface", "feature_name")),
)

EEPROM_DESCRIPTORS = (
    _desc("identifier", "identifier_info", "Type of transceiver information", ("interface", "identifier")),
    _desc("encoding", "encoding_info", "Transceiver encoding information", ("interface", "encoding")),
    _desc("power_class", "powerclass_info", "Highest power class supported by the transceiver"),
    _desc("power_class_wattage", "powerclass_watts", "Maximum wattage supported by the transceivers power class"),
    _desc("signaling_rate", "signalingrate_bauds_per_second",
          "Signaling rate in bauds per second supported by the transceiver"),
    _desc("supported_link_length", "supported_link_length_meter",
          "Maximum supported link length for different media in meters", ("interface", "media")),
    _desc("vendor_name", "vendor_name_info", "Vendor name", ("interface", "vendor_name")),
    _desc("vendor_part_number", "vendor_part_number_info", "Vendor part number", ("interface", "vendor_part_number")),
    _desc("vendor_revision", "vendor_revision_info", "Vendor revision", ("interface", "vendor_revision")),
    _desc("vendor_serial_number", "vendor_serial_number_info", "Vendor serial number",
          ("interface", "vendor_serial_number")),
    _desc("vendor_oui", "vendor_oui_info", "Vendor IEE company ID", ("interface", "vendor_oui")),
    _desc("date_code", "date_code_unix_time", "Vendor supplied date code exported as unix epoch"),
    _desc("wavelength", "wavelength_nanometer", "Wavelength in nanometers"),
    _desc("module_supports_monitoring", "module_supports_monitoring_bool",
          "1 if the module supports real time monitoring"),
)

MODULE_TEMPERATURE = _measurement(
    "module_temperature", "module_temperature", INTERFACE_LABELS,
    "Module temperature in degrees celsius", "the module temperature", "module temperature",
    "degrees_celsius", "degrees_celsius", "degrees celsius",
)

MODULE_VOLTAGE = _measurement(
    "module_voltage", "module_voltage", INTERFACE_LABELS,
    "Module supply voltage in Volts", "the module voltage", "module voltage",
    "volts", "voltage", "volts",
)

LASER_BIAS = _measurement(
    "laser_bias_current", "laser_bias_current", LASER_LABELS,
    "Laser bias current in milliamperes", "the laser bias current", "the laser bias current",
    "milliamperes", "milliamperes", "milliamperes",
)


@dataclass(frozen=True)
class DescriptorCatalog:
    """Immutable registry of the descriptors one exporter instance reports."""

    interface_features: bool
    power: PowerUnit
    module_temperature: MeasurementDescriptors = MODULE_TEMPERATURE
    module_voltage: MeasurementDescriptors = MODULE_VOLTAGE
    laser_bias: MeasurementDescriptors = LASER_BIAS
    index: Mapping[str, Descriptor] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def build(cls, interface_features: bool = True, power_unit_dbm: bool = False) -> DescriptorCatalog:
        power = power_unit(power_unit_dbm)
        descriptors: list[Descriptor] = list(DRIVER_DESCRIPTORS)
        if interface_features:
            descriptors.extend(FEATURE_DESCRIPTORS)
        descriptors.extend(EEPROM_DESCRIPTORS)
        for group in (MODULE_TEMPERATURE, MODULE_VOLTAGE, LASER_BIAS, power.tx, power.rx):
            descriptors.extend(group)
        return cls(
            interface_features=interface_features,
            power=power,
            index=MappingProxyType({d.key: d for d in descriptors}),
        )

    @property
    def power_unit_dbm(self) -> bool:
        return isinstance(self.power, DbmPower)

    def describe(self) -> list[Descriptor]:
        return list(self.index.values())

    def get(self, key: str) -> Descriptor:
        return self.index[key]

    def __len__(self) -> int:
        return len(self.index)
