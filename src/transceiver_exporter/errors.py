"""Domain-specific errors for transceiver_exporter."""


class TransceiverExporterError(Exception):
    """Base error for transceiver_exporter."""


class ConfigurationError(TransceiverExporterError):
    """Raised when filter or exporter settings contradict each other."""


class InspectorError(TransceiverExporterError):
    """Base hardware inspector error."""


class InspectorInitError(InspectorError):
    """Raised when the hardware query capability cannot be acquired."""


class InterfaceQueryError(InspectorError):
    """Raised when the data of a single interface cannot be retrieved."""

    def __init__(self, interface: str, reason: str) -> None:
        super().__init__(f"Error fetching information for interface {interface}: {reason}")
        self.interface = interface
        self.reason = reason


class MeasurementError(InspectorError):
    """Raised when a single DOM measurement or its thresholds cannot be read."""


class ScrapeError(TransceiverExporterError):
    """Raised by the transport when a scrape ended with a fatal error."""
