"""Prometheus exporter for pluggable optical transceivers on Linux hosts."""

__version__ = "1.0.0"
