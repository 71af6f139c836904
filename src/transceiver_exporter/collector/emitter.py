"""Turns the hardware record of one interface into metric samples."""

from __future__ import annotations

import logging
from typing import Callable

from ..errors import MeasurementError
from ..inspector.base import (
    DriverInfo,
    EepromRecord,
    FeatureStatus,
    InterfaceRecord,
    Measurement,
)
from ..units import bool_to_float
from .base import MetricSample
from .descriptors import DescriptorCatalog, MeasurementDescriptors

logger = logging.getLogger(__name__)


def _identity(value: float) -> float:
    return value


class MetricEmitter:
    """Walks interface records and produces samples against a catalog.

    Module temperature and voltage are only reported for modules that
    support monitoring, and bias and light levels only for lasers that do.
    A measurement that cannot be read is skipped on its own; everything
    else about the interface is still reported.
    """

    def __init__(self, catalog: DescriptorCatalog) -> None:
        self._catalog = catalog

    @property
    def catalog(self) -> DescriptorCatalog:
        return self._catalog

    def emit(self, record: InterfaceRecord) -> list[MetricSample]:
        features = record.features if record.features_error is None else None
        return self.emit_interface(record.name, record.driver_info, record.eeprom, features)

    def emit_interface(
        self,
        name: str,
        driver_info: DriverInfo | None = None,
        eeprom: EepromRecord | None = None,
        features: dict[str, FeatureStatus] | None = None,
    ) -> list[MetricSample]:
        samples: list[MetricSample] = []
        if self._catalog.interface_features and features is not None:
            self._emit_features(samples, name, features)
        if driver_info is not None:
            self._emit_driver_info(samples, name, driver_info)
        if eeprom is not None:
            self._emit_eeprom(samples, name, eeprom)
        logger.debug("Emitted %d samples for %s", len(samples), name)
        return samples

    @staticmethod
    def _emit_features(samples: list[MetricSample], name: str, features: dict[str, FeatureStatus]) -> None:
        for feature, status in features.items():
            samples.append(MetricSample("interface_feature_available", bool_to_float(status.available), (name, feature)))
            samples.append(MetricSample("interface_feature_active", bool_to_float(status.active), (name, feature)))

    @staticmethod
    def _emit_driver_info(samples: list[MetricSample], name: str, info: DriverInfo) -> None:
        samples.extend([
            MetricSample("driver_name", 1.0, (name, info.driver_name)),
            MetricSample("driver_version", 1.0, (name, info.driver_version)),
            MetricSample("firmware_version", 1.0, (name, info.firmware_version)),
            MetricSample("bus_info", 1.0, (name, info.bus_info)),
            MetricSample("expansion_rom_version", 1.0, (name, info.expansion_rom_version)),
        ])

    def _emit_eeprom(self, samples: list[MetricSample], name: str, rom: EepromRecord) -> None:
        labels = (name,)
        samples.extend([
            MetricSample("identifier", 1.0, (name, rom.identifier)),
            MetricSample("encoding", 1.0, (name, rom.encoding)),
            MetricSample("power_class", float(rom.power_class.ordinal), labels),
            MetricSample("power_class_wattage", float(rom.power_class.max_power), labels),
            MetricSample("signaling_rate", float(rom.signaling_rate), labels),
        ])
        for media, length in rom.supported_link_lengths.items():
            samples.append(MetricSample("supported_link_length", float(length), (name, media)))
        samples.extend([
            MetricSample("vendor_name", 1.0, (name, rom.vendor_name)),
            MetricSample("vendor_part_number", 1.0, (name, rom.vendor_pn)),
            MetricSample("vendor_revision", 1.0, (name, rom.vendor_rev)),
            MetricSample("vendor_serial_number", 1.0, (name, rom.vendor_sn)),
            MetricSample("vendor_oui", 1.0, (name, rom.vendor_oui)),
            MetricSample("date_code", rom.date_code_unix(), labels),
            MetricSample("wavelength", float(rom.wavelength), labels),
            MetricSample("module_supports_monitoring", bool_to_float(rom.supports_monitoring), labels),
        ])

        if not rom.supports_monitoring:
            return

        catalog = self._catalog
        self._emit_measurement(samples, catalog.module_temperature, labels, rom.get_module_temperature)
        self._emit_measurement(samples, catalog.module_voltage, labels, rom.get_module_voltage)

        power = catalog.power
        for index, laser in enumerate(rom.lasers):
            if not laser.supports_monitoring:
                continue
            laser_labels = (name, str(index))
            self._emit_measurement(samples, catalog.laser_bias, laser_labels, laser.get_bias)
            self._emit_measurement(samples, power.tx, laser_labels, laser.get_tx_power, power.convert)
            self._emit_measurement(samples, power.rx, laser_labels, laser.get_rx_power, power.convert)

    @staticmethod
    def _emit_measurement(
        samples: list[MetricSample],
        descriptors: MeasurementDescriptors,
        labels: tuple[str, ...],
        read: Callable[[], Measurement],
        convert: Callable[[float], float] = _identity,
    ) -> None:
        """Emit value and support flag, then the thresholds if the module has them.

        *convert* is applied to the value and the thresholds but not to the
        support flag; light levels pass the catalog's power conversion here.
        """
        try:
            measurement = read()
        except MeasurementError as exc:
            logger.debug("Skipping %s for %s: %s", descriptors.value.name, labels, exc)
            return

        samples.append(MetricSample(descriptors.value.key, convert(measurement.value), labels))
        samples.append(MetricSample(
            descriptors.supports_thresholds.key, bool_to_float(measurement.supports_thresholds), labels,
        ))
        if not measurement.supports_thresholds:
            return
        try:
            thresholds = measurement.alarm_thresholds()
        except MeasurementError:
            return
        samples.extend([
            MetricSample(descriptors.high_alarm.key, convert(thresholds.high_alarm), labels),
            MetricSample(descriptors.high_warning.key, convert(thresholds.high_warning), labels),
            MetricSample(descriptors.low_alarm.key, convert(thresholds.low_alarm), labels),
            MetricSample(descriptors.low_warning.key, convert(thresholds.low_warning), labels),
        ])
