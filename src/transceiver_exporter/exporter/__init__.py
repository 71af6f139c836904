"""Transport for collected samples."""

from .prometheus import TransceiverCollector, build_registry, create_app, serve

__all__ = [
    'TransceiverCollector',
    'build_registry',
    'create_app',
    'serve',
]
