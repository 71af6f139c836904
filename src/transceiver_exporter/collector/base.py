"""Base types shared by the descriptor catalog, emitter and manager."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Descriptor:
    """Static identity of a metric, independent of any sampled value."""

    key: str
    name: str
    help: str
    label_names: tuple[str, ...]


@dataclass(frozen=True)
class MetricSample:
    """A single metric data point, addressed by its descriptor key."""

    key: str
    value: float
    label_values: tuple[str, ...]
