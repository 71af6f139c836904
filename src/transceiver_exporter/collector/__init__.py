"""Descriptor catalog, metric emitter and scrape orchestration."""

from .base import Descriptor, MetricSample
from .descriptors import DbmPower, DescriptorCatalog, MilliwattPower
from .emitter import MetricEmitter
from .manager import CollectorManager, ScrapeResult

__all__ = [
    'Descriptor',
    'MetricSample',
    'DbmPower',
    'DescriptorCatalog',
    'MilliwattPower',
    'MetricEmitter',
    'CollectorManager',
    'ScrapeResult',
]
