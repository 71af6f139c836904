"""Prometheus exporter: serves each scrape as a fresh metrics snapshot."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app
from prometheus_client.core import GaugeMetricFamily, Metric
from prometheus_client.exposition import ThreadingWSGIServer, _get_best_family
from prometheus_client.registry import Collector

from .. import __version__
from ..collector.manager import CollectorManager
from ..config import WebConfig
from ..errors import ConfigurationError, ScrapeError

logger = logging.getLogger(__name__)

LANDING_PAGE = """<html>
<head><title>transceiver-exporter (Version {version})</title></head>
<body>
<h1>transceiver-exporter</h1>
<p><a href="{path}">Metrics</a></p>
</body>
</html>
"""


class TransceiverCollector(Collector):
    """Adapts :class:`CollectorManager` to the prometheus_client collector API.

    Every call to :meth:`collect` performs a complete scrape. A fatal scrape
    error is raised as :class:`ScrapeError` so the HTTP layer can fail the
    request; per-interface errors only show up in the log.
    """

    def __init__(self, manager: CollectorManager) -> None:
        self._manager = manager

    def describe(self) -> Iterable[Metric]:
        for descriptor in self._manager.catalog.describe():
            yield GaugeMetricFamily(descriptor.name, descriptor.help, labels=descriptor.label_names)

    def collect(self) -> Iterable[Metric]:
        result = self._manager.collect_once()
        if not result.ok:
            raise ScrapeError(f"Scrape failed: {result.fatal}") from result.fatal

        catalog = self._manager.catalog
        families: dict[str, GaugeMetricFamily] = {}
        for sample in result.samples:
            family = families.get(sample.key)
            if family is None:
                descriptor = catalog.get(sample.key)
                family = GaugeMetricFamily(descriptor.name, descriptor.help, labels=descriptor.label_names)
                families[sample.key] = family
            family.add_metric(list(sample.label_values), sample.value)

        for descriptor in catalog.describe():
            if descriptor.key in families:
                yield families[descriptor.key]


def build_registry(manager: CollectorManager) -> CollectorRegistry:
    """Create a registry holding only the transceiver collector."""
    registry = CollectorRegistry()
    registry.register(TransceiverCollector(manager))
    return registry


def create_app(registry: CollectorRegistry, telemetry_path: str = "/metrics") -> Callable[..., Any]:
    """WSGI app: metrics on *telemetry_path*, a landing page on ``/``."""
    metrics_app = make_wsgi_app(registry)
    landing = LANDING_PAGE.format(version=__version__, path=telemetry_path).encode("utf-8")

    def app(environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        path = environ.get("PATH_INFO", "/")
        if path == telemetry_path:
            try:
                return metrics_app(environ, start_response)
            except ScrapeError as exc:
                logger.error("%s", exc)
                start_response("500 Internal Server Error", [("Content-Type", "text/plain; charset=utf-8")])
                return [f"{exc}\n".encode("utf-8")]
        if path == "/":
            start_response("200 OK", [("Content-Type", "text/html; charset=utf-8")])
            return [landing]
        start_response("404 Not Found", [("Content-Type", "text/plain; charset=utf-8")])
        return [b"Not Found\n"]

    return app


def parse_listen_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` (``[v6]:port`` for IPv6) into its parts."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ConfigurationError(f"Invalid listen address {address!r}, expected host:port")
    return host.strip("[]"), int(port)


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def serve(web: WebConfig, registry: CollectorRegistry) -> None:
    """Listen on the configured address until interrupted."""
    host, port = parse_listen_address(web.listen_address)

    class ExporterServer(ThreadingWSGIServer):
        """ThreadingWSGIServer with the address family of the listen address."""

    ExporterServer.address_family, addr = _get_best_family(host or "0.0.0.0", port)
    app = create_app(registry, web.telemetry_path)
    with make_server(addr, port, app, server_class=ExporterServer, handler_class=_QuietHandler) as httpd:
        logger.info("Listening on %s", web.listen_address)
        httpd.serve_forever()
