"""Hardware inspectors: read access to interfaces and transceiver EEPROMs."""

from .base import (
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
from .ethtool import EthtoolInspector

__all__ = [
    'DriverInfo',
    'EepromRecord',
    'FeatureStatus',
    'HardwareInspector',
    'InterfaceHandle',
    'InterfaceRecord',
    'Laser',
    'Measurement',
    'PowerClass',
    'Thresholds',
    'EthtoolInspector',
]
