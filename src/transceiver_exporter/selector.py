"""Interface selection: which interfaces a scrape inspects."""

from __future__ import annotations

from typing import Iterable

from .config import FilterConfig
from .inspector.base import InterfaceHandle


def is_monitored(iface: InterfaceHandle, filters: FilterConfig) -> bool:
    """Apply the filter rules to one interface, stopping at the first exclusion."""
    if iface.is_loopback:
        return False
    if filters.exclude_admin_down and iface.is_admin_down:
        return False
    if filters.exclude_names and iface.name in filters.exclude_names:
        return False
    if filters.include_names and iface.name not in filters.include_names:
        return False
    if filters.exclude_pattern is not None and filters.exclude_pattern.search(iface.name):
        return False
    if filters.include_pattern is not None and not filters.include_pattern.search(iface.name):
        return False
    return True


def select_interfaces(interfaces: Iterable[InterfaceHandle], filters: FilterConfig) -> list[str]:
    """Return the names of the interfaces in scope, in enumeration order.

    Raises :class:`~transceiver_exporter.errors.ConfigurationError` before
    looking at any interface when names are both excluded and included.
    """
    filters.validate()
    return [iface.name for iface in interfaces if is_monitored(iface, filters)]
