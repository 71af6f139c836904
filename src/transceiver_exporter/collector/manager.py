"""Collector manager that orchestrates one scrape across all interfaces."""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from ..config import CollectorConfig, FilterConfig
from ..errors import InterfaceQueryError, TransceiverExporterError
from ..inspector.base import HardwareInspector
from ..inspector.ethtool import EthtoolInspector
from ..selector import select_interfaces
from .base import MetricSample
from .descriptors import DescriptorCatalog
from .emitter import MetricEmitter

logger = logging.getLogger(__name__)

# put on the error queue by the worker as its last item
_DONE = object()


@dataclass
class ScrapeResult:
    """Outcome of one scrape.

    ``fatal`` is set when the scrape could not run at all (bad filter
    configuration, inspector unavailable); ``samples`` is empty then.
    ``errors`` holds the interfaces that could not be read.
    """

    samples: list[MetricSample] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)
    fatal: Exception | None = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.fatal is None


class Scrape:
    """A scrape running on its own worker thread.

    The worker reports per-interface errors on :attr:`errors` and always
    calls :meth:`finish` when it ends, whether it succeeded or not.
    """

    def __init__(self) -> None:
        self.samples: list[MetricSample] = []
        self.errors: queue.Queue[object] = queue.Queue()
        self.done = threading.Event()
        self.fatal: Exception | None = None
        self.started = time.monotonic()
        self._thread: threading.Thread | None = None

    def start(self, target: Callable[[Scrape], None]) -> None:
        self._thread = threading.Thread(target=target, args=(self,), daemon=True, name="scrape")
        self._thread.start()

    def finish(self) -> None:
        self.done.set()
        self.errors.put(_DONE)

    def drain(self) -> list[Exception]:
        """Log and collect errors until the worker signals completion."""
        collected: list[Exception] = []
        while True:
            err = self.errors.get()
            if err is _DONE:
                break
            logger.error("Error while collecting metrics: %s", err)
            collected.append(err)
        if self._thread is not None:
            self._thread.join()
        return collected


class CollectorManager:
    """Runs scrapes: select interfaces, query each one, emit its samples.

    Instantiate it once with the collector and filter configuration; the
    descriptor catalog is built here and shared read-only by all scrapes.
    Every scrape opens a fresh inspector from *inspector_factory*.
    """

    def __init__(
        self,
        config: CollectorConfig,
        filters: FilterConfig,
        inspector_factory: Callable[[], HardwareInspector] | None = None,
    ) -> None:
        self._config = config
        self._filters = filters
        self._catalog = DescriptorCatalog.build(
            interface_features=config.interface_features,
            power_unit_dbm=config.power_unit_dbm,
        )
        self._emitter = MetricEmitter(self._catalog)
        if inspector_factory is None:
            inspector_factory = self._default_inspector
        self._inspector_factory = inspector_factory
        logger.debug(
            "Descriptor catalog holds %d metrics (features: %s, dBm: %s)",
            len(self._catalog), self._catalog.interface_features, self._catalog.power_unit_dbm,
        )

    @property
    def catalog(self) -> DescriptorCatalog:
        return self._catalog

    def _default_inspector(self) -> HardwareInspector:
        return EthtoolInspector(
            ethtool_path=self._config.ethtool_path,
            timeout=self._config.command_timeout_seconds,
            collect_features=self._config.interface_features,
        )

    def _scrape(self, scrape: Scrape) -> None:
        # configuration problems surface before any hardware is touched
        self._filters.validate()
        with self._inspector_factory() as inspector:
            names = select_interfaces(inspector.list_interfaces(), self._filters)
            logger.debug("Scraping %d interfaces: %s", len(names), ", ".join(names))
            for name in names:
                try:
                    record = inspector.query(name)
                    if record is None:
                        continue
                    samples = self._emitter.emit(record)
                except InterfaceQueryError as exc:
                    scrape.errors.put(exc)
                    continue
                except Exception as exc:
                    logger.exception("Unexpected error while reading interface %s", name)
                    scrape.errors.put(InterfaceQueryError(name, f"{type(exc).__name__}: {exc}"))
                    continue
                scrape.samples.extend(samples)

    def _run(self, scrape: Scrape) -> None:
        """Worker thread body."""
        try:
            self._scrape(scrape)
        except Exception as exc:
            if not isinstance(exc, TransceiverExporterError):
                logger.exception("Unexpected error during scrape")
            scrape.fatal = exc
            scrape.samples.clear()
        finally:
            scrape.finish()

    def start_scrape(self) -> Scrape:
        """Start a scrape in the background and return its handle."""
        scrape = Scrape()
        scrape.start(self._run)
        return scrape

    def collect_once(self) -> ScrapeResult:
        """Run one scrape to completion and return its samples and errors."""
        scrape = self.start_scrape()
        errors = scrape.drain()
        result = ScrapeResult(
            samples=scrape.samples,
            errors=errors,
            fatal=scrape.fatal,
            duration_seconds=time.monotonic() - scrape.started,
        )
        if not result.ok:
            logger.error("Scrape failed: %s", result.fatal)
        else:
            logger.debug(
                "Scrape finished: %d samples, %d errors in %.2fs",
                len(result.samples), len(result.errors), result.duration_seconds,
            )
        return result
