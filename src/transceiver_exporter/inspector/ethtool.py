"""Hardware inspector backed by the ``ethtool`` command line tool.

Interfaces are enumerated with psutil. Driver information, offload features
and the transceiver EEPROM are read per interface with ``ethtool -i``,
``ethtool -k`` and ``ethtool -m`` and parsed from their text output. Both the
SFF-8472 layout (SFP, one laser) and the SFF-8636 layout (QSFP, one laser
per channel) are understood.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from datetime import datetime, timezone

import psutil

from ..errors import InspectorInitError, InterfaceQueryError
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

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"[-+]?\d+(?:\.\d+)?")
_CHANNEL_RE = re.compile(r"^(?P<kind>.*?)\s*\(Channel (?P<channel>\d+)\)$")
_PARENS_RE = re.compile(r"\(([^)]*)\)")
_DATE_CODE_RE = re.compile(r"^(\d{2})(\d{2})(\d{2})")
_RATE_RE = re.compile(r"(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>[MG])(?:Bd|bps)", re.IGNORECASE)
_LENGTH_RE = re.compile(r"(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>km|m)\b")
_MAX_POWER_RE = re.compile(r"(\d+(?:\.\d+)?)\s*W max", re.IGNORECASE)

# SFF-8636 extended identifier: maximum power consumption -> power class
_QSFP_POWER_CLASSES = {1.5: 1, 2.0: 2, 2.5: 3, 3.5: 4, 4.0: 5, 4.5: 6, 5.0: 7}

_DRIVER_KEYS = {
    "driver": "driver_name",
    "version": "driver_version",
    "firmware-version": "firmware_version",
    "bus-info": "bus_info",
    "expansion-rom-version": "expansion_rom_version",
}

# ethtool prints these when a facet simply does not exist for an interface
_UNSUPPORTED_MARKERS = ("Operation not supported", "not supported")
_VANISHED_MARKERS = ("No such device",)

_THRESHOLD_SUFFIXES = {
    "high_alarm": "high alarm threshold",
    "high_warning": "high warning threshold",
    "low_alarm": "low alarm threshold",
    "low_warning": "low warning threshold",
}


def _first_number(value: str) -> float | None:
    match = _NUMBER_RE.search(value)
    if match is None:
        return None
    return float(match.group())


def _described(value: str) -> str:
    """Return the description in ``0x03 (SFP)``-style values."""
    match = _PARENS_RE.search(value)
    if match is None:
        return value.strip()
    return match.group(1).strip()


def _split_pairs(text: str) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for line in text.splitlines():
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        pairs.append((key.strip(), value.strip()))
    return pairs


def parse_driver_info(text: str) -> DriverInfo | None:
    """Parse ``ethtool -i`` output. Returns ``None`` without a driver line."""
    fields: dict[str, str] = {}
    for key, value in _split_pairs(text):
        attr = _DRIVER_KEYS.get(key)
        if attr is not None:
            fields[attr] = value
    if "driver_name" not in fields:
        return None
    return DriverInfo(**fields)


def parse_features(text: str) -> dict[str, FeatureStatus]:
    """Parse ``ethtool -k`` output into feature name -> status.

    A feature is available unless ethtool marks it ``[fixed]`` and active
    when its state is ``on``.
    """
    features: dict[str, FeatureStatus] = {}
    for line in text.splitlines():
        if line.startswith("Features for") or ":" not in line:
            continue
        name, state = line.split(":", 1)
        state = state.strip()
        if not state:
            continue
        features[name.strip()] = FeatureStatus(
            available="[fixed]" not in state,
            active=state.split()[0] == "on",
        )
    return features


def _parse_date_code(value: str) -> datetime | None:
    match = _DATE_CODE_RE.match(value.strip())
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return datetime(2000 + year, month, day, tzinfo=timezone.utc)
    except ValueError:
        return None


def _parse_signaling_rate(value: str) -> float:
    match = _RATE_RE.search(value)
    if match is None:
        return 0.0
    scale = 1e9 if match.group("unit").upper() == "G" else 1e6
    return float(match.group("value")) * scale


def _media_name(key: str) -> str:
    media = key[len("Length ("):].rstrip(")")
    media = media.split(",")[0]
    return media.strip().lower().replace(" ", "_")


def _parse_link_lengths(pairs: list[tuple[str, str]]) -> dict[str, float]:
    lengths: dict[str, float] = {}
    for key, value in pairs:
        if not key.startswith("Length ("):
            continue
        match = _LENGTH_RE.search(value)
        if match is None:
            continue
        meters = float(match.group("value"))
        if match.group("unit") == "km":
            meters *= 1000
        media = _media_name(key)
        lengths[media] = max(meters, lengths.get(media, 0.0))
    return lengths


def _parse_power_class(pairs: list[tuple[str, str]], fields: dict[str, str]) -> PowerClass:
    if "Power class" in fields:
        ordinal = _first_number(fields["Power class"])
        max_power = _first_number(fields.get("Max power", ""))
        if ordinal is not None:
            return PowerClass(int(ordinal), max_power or 0.0)
    for key, value in pairs:
        if key != "Extended identifier description":
            continue
        match = _MAX_POWER_RE.search(value)
        if match is None:
            continue
        max_power = float(match.group(1))
        return PowerClass(_QSFP_POWER_CLASSES.get(max_power, 0), max_power)
    # SFF-8472 power level 1
    return PowerClass(1, 1.0)


def _thresholds(fields: dict[str, str], prefix: str) -> Thresholds | None:
    values: dict[str, float] = {}
    for attr, suffix in _THRESHOLD_SUFFIXES.items():
        number = _first_number(fields.get(f"{prefix} {suffix}", ""))
        if number is None:
            return None
        values[attr] = number
    return Thresholds(**values)


def _measurement(
    value: str | None,
    fields: dict[str, str],
    threshold_prefixes: tuple[str, ...],
    supports_thresholds: bool | None,
) -> Measurement | None:
    if value is None:
        return None
    number = _first_number(value)
    if number is None:
        return None
    thresholds = None
    for prefix in threshold_prefixes:
        thresholds = _thresholds(fields, prefix)
        if thresholds is not None:
            break
    if supports_thresholds is None:
        # no flags line: printing the threshold block implies support
        supports_thresholds = thresholds is not None
    return Measurement(number, supports_thresholds, thresholds)


def _laser_kind(key: str) -> str | None:
    lowered = key.lower()
    if "bias" in lowered:
        return "bias"
    if lowered.startswith(("transmit", "laser output power", "laser tx power", "tx power")):
        return "tx_power"
    if lowered.startswith(("rcvr", "receiver", "laser rx power", "rx power")):
        return "rx_power"
    return None


def _collect_channels(pairs: list[tuple[str, str]]) -> dict[int, dict[str, str]]:
    channels: dict[int, dict[str, str]] = {}
    for key, value in pairs:
        match = _CHANNEL_RE.match(key)
        if match is None:
            continue
        kind = _laser_kind(match.group("kind"))
        if kind is None:
            continue
        channels.setdefault(int(match.group("channel")), {}).setdefault(kind, value)
    return channels


def parse_module_eeprom(text: str) -> EepromRecord | None:
    """Parse ``ethtool -m`` output. Returns ``None`` when no module is decoded."""
    pairs = _split_pairs(text)
    fields: dict[str, str] = {}
    for key, value in pairs:
        fields.setdefault(key, value)
    if "Identifier" not in fields:
        return None

    flags = fields.get("Alarm/warning flags implemented")
    thresholds_supported = None if flags is None else flags.lower() == "yes"
    temperature = _measurement(
        fields.get("Module temperature"), fields, ("Module temperature",), thresholds_supported,
    )
    voltage = _measurement(
        fields.get("Module voltage"), fields, ("Module voltage",), thresholds_supported,
    )

    bias_prefixes = ("Laser bias current",)
    tx_prefixes = ("Laser output power", "Laser tx power")
    rx_prefixes = ("Laser rx power",)

    lasers: list[Laser] = []
    channels = _collect_channels(pairs)
    if channels:
        for channel in sorted(channels):
            readings = channels[channel]
            lasers.append(Laser(
                bias=_measurement(readings.get("bias"), fields, bias_prefixes, thresholds_supported),
                tx_power=_measurement(readings.get("tx_power"), fields, tx_prefixes, thresholds_supported),
                rx_power=_measurement(readings.get("rx_power"), fields, rx_prefixes, thresholds_supported),
            ))
    else:
        rx_value = fields.get("Receiver signal average optical power", fields.get("Receiver signal OMA"))
        laser = Laser(
            bias=_measurement(fields.get("Laser bias current"), fields, bias_prefixes, thresholds_supported),
            tx_power=_measurement(fields.get("Laser output power"), fields, tx_prefixes, thresholds_supported),
            rx_power=_measurement(rx_value, fields, rx_prefixes, thresholds_supported),
        )
        if laser.supports_monitoring:
            lasers.append(laser)

    diagnostics = fields.get("Optical diagnostics support")
    if diagnostics is not None:
        supports_monitoring = diagnostics.lower() == "yes"
    else:
        supports_monitoring = temperature is not None or bool(lasers)

    return EepromRecord(
        identifier=_described(fields["Identifier"]),
        encoding=_described(fields.get("Encoding", "")),
        power_class=_parse_power_class(pairs, fields),
        signaling_rate=_parse_signaling_rate(fields.get("BR, Nominal", fields.get("BR Nominal", ""))),
        supported_link_lengths=_parse_link_lengths(pairs),
        vendor_name=fields.get("Vendor name", ""),
        vendor_pn=fields.get("Vendor PN", ""),
        vendor_rev=fields.get("Vendor rev", ""),
        vendor_sn=fields.get("Vendor SN", ""),
        vendor_oui=fields.get("Vendor OUI", ""),
        date_code=_parse_date_code(fields.get("Date code", "")),
        wavelength=_first_number(fields.get("Laser wavelength", "")) or 0.0,
        supports_monitoring=supports_monitoring,
        temperature=temperature,
        voltage=voltage,
        lasers=lasers,
    )


def _handle_from_stats(name: str, stats) -> InterfaceHandle:
    # psutil >= 5.9.3 exposes the raw interface flags, e.g. "up,loopback,running"
    flags = getattr(stats, "flags", "")
    if flags:
        flag_set = set(flags.split(","))
        return InterfaceHandle(name, "loopback" in flag_set, "up" in flag_set)
    return InterfaceHandle(name, name == "lo", bool(stats.isup))


class EthtoolInspector(HardwareInspector):
    """Reads interface and transceiver data by running ``ethtool``."""

    def __init__(
        self,
        ethtool_path: str = "ethtool",
        timeout: float = 5.0,
        collect_features: bool = True,
    ) -> None:
        self._ethtool_path = ethtool_path
        self._timeout = timeout
        self._collect_features = collect_features
        self._binary: str | None = None

    def open(self) -> None:
        binary = shutil.which(self._ethtool_path)
        if binary is None:
            raise InspectorInitError(f"Could not instantiate ethtool: {self._ethtool_path!r} not found")
        self._binary = binary

    def close(self) -> None:
        self._binary = None

    def list_interfaces(self) -> list[InterfaceHandle]:
        try:
            stats = psutil.net_if_stats()
        except OSError as exc:
            raise InspectorInitError(f"Could not enumerate system's interfaces: {exc}") from exc
        return [_handle_from_stats(name, st) for name, st in stats.items()]

    def _run(self, name: str, option: str) -> subprocess.CompletedProcess:
        if self._binary is None:
            raise InspectorInitError("ethtool inspector used before open()")
        try:
            return subprocess.run(
                [self._binary, option, name],
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self._timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise InterfaceQueryError(name, f"ethtool {option} failed: {exc}") from exc

    def query(self, name: str) -> InterfaceRecord | None:
        if name not in psutil.net_if_stats():
            return None

        result = self._run(name, "-i")
        driver_info = None
        if result.returncode == 0:
            driver_info = parse_driver_info(result.stdout)
        elif any(marker in result.stderr for marker in _VANISHED_MARKERS):
            return None
        elif not any(marker in result.stderr for marker in _UNSUPPORTED_MARKERS):
            raise InterfaceQueryError(name, result.stderr.strip() or f"ethtool -i exited with {result.returncode}")

        record = InterfaceRecord(name=name, driver_info=driver_info)

        if self._collect_features:
            result = self._run(name, "-k")
            if result.returncode == 0:
                record.features = parse_features(result.stdout)
            else:
                record.features_error = InterfaceQueryError(name, result.stderr.strip())

        result = self._run(name, "-m")
        if result.returncode == 0:
            record.eeprom = parse_module_eeprom(result.stdout)
        else:
            logger.debug("No module EEPROM for %s: %s", name, result.stderr.strip())

        return record
