import argparse
import logging
import signal
import threading
import time
from collections.abc import Callable, Iterable
from wsgiref.simple_server import WSGIRequestHandler, make_server

import structlog
from prometheus_client import CollectorRegistry, make_wsgi_app
from prometheus_client.exposition import ThreadingWSGIServer

from .collector import TaipowerCollector
from .config import settings
from .pipeline import ScrapePipeline
from .taipower_client import TaipowerClient

# Configure structured logging
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, settings.log_level)
    ),
)

logger = structlog.get_logger()

# Global flag for graceful shutdown
_shutdown_requested = False

LANDING_PAGE = """<html>
<head><title>Taipower Exporter</title></head>
<body>
<h1>Taipower Exporter</h1>
<p><a href="{metrics_path}">Metrics</a></p>
</body>
</html>
"""

WSGIApp = Callable[[dict, Callable], Iterable[bytes]]


class DrainingWSGIServer(ThreadingWSGIServer):
    """Threaded WSGI server that can wait for in-flight requests to finish.

    Request threads stay daemonic so a scrape still running once the
    shutdown wait has elapsed does not keep the process alive.
    """

    # server_close() must not join request threads without a deadline.
    block_on_close = False

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._active_requests = 0
        self._idle = threading.Condition()

    @property
    def active_requests(self) -> int:
        with self._idle:
            return self._active_requests

    def process_request(self, request, client_address) -> None:
        # Counted before the thread starts so a request accepted just
        # before shutdown is never missed by wait_for_requests.
        with self._idle:
            self._active_requests += 1
        try:
            super().process_request(request, client_address)
        except Exception:
            self._request_done()
            raise

    def process_request_thread(self, request, client_address) -> None:
        try:
            super().process_request_thread(request, client_address)
        finally:
            self._request_done()

    def _request_done(self) -> None:
        with self._idle:
            self._active_requests -= 1
            self._idle.notify_all()

    def wait_for_requests(self, timeout: float) -> bool:
        """Wait up to timeout seconds for in-flight requests; True if all finished."""
        with self._idle:
            return self._idle.wait_for(lambda: self._active_requests == 0, timeout=timeout)


class QuietRequestHandler(WSGIRequestHandler):
    """Routes access logs through structlog at debug level."""

    def log_message(self, format: str, *args) -> None:
        logger.debug("http_request", client=self.address_string(), request=format % args)


def signal_handler(signum: int, frame) -> None:
    """Handle shutdown signals."""
    global _shutdown_requested
    logger.info("shutdown_requested", signal=signum)
    _shutdown_requested = True


def parse_listen_address(address: str) -> tuple[str, int]:
    """Split a "host:port" listen address; an empty host binds all interfaces."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"invalid listen address {address!r}")
    return host.strip("[]") or "0.0.0.0", int(port)


def create_app(registry: CollectorRegistry, metrics_path: str) -> WSGIApp:
    """Build the WSGI app: metrics on metrics_path, a landing page elsewhere."""
    metrics_app = make_wsgi_app(registry)
    landing_page = LANDING_PAGE.format(metrics_path=metrics_path).encode("utf-8")

    def app(environ: dict, start_response: Callable) -> Iterable[bytes]:
        if environ.get("PATH_INFO", "/") == metrics_path:
            return metrics_app(environ, start_response)
        start_response(
            "200 OK",
            [
                ("Content-Type", "text/html; charset=utf-8"),
                ("Content-Length", str(len(landing_page))),
            ],
        )
        return [landing_page]

    return app


def build_registry(client: TaipowerClient | None = None) -> CollectorRegistry:
    """Create the registry holding the Taipower collector."""
    registry = CollectorRegistry()
    TaipowerCollector(pipeline=ScrapePipeline(client), registry=registry)
    return registry


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Prometheus exporter for Taipower regional load")
    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        default=settings.listen_address,
        help="Address on which to expose metrics and web interface.",
    )
    parser.add_argument(
        "--web.telemetry-path",
        dest="telemetry_path",
        default=settings.telemetry_path,
        help="Path under which to expose metrics.",
    )
    return parser.parse_args(argv)


def wait_for_shutdown() -> None:
    """Block until a shutdown signal has been received."""
    while not _shutdown_requested:
        time.sleep(1)


def main() -> None:
    """Main entry point for the exporter service."""
    args = parse_args()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        host, port = parse_listen_address(args.listen_address)
        registry = build_registry()
        app = create_app(registry, args.telemetry_path)
        server = make_server(
            host,
            port,
            app,
            server_class=DrainingWSGIServer,
            handler_class=QuietRequestHandler,
        )
    except (OSError, ValueError) as e:
        logger.error("exporter_startup_failed", error=str(e))
        raise SystemExit(1) from e

    serve_thread = threading.Thread(target=server.serve_forever, name="http-server", daemon=True)
    serve_thread.start()
    logger.info(
        "exporter_listening",
        listen_address=args.listen_address,
        telemetry_path=args.telemetry_path,
        data_url=settings.taipower_data_url,
    )

    try:
        wait_for_shutdown()
    finally:
        logger.info("exporter_stopping")
        server.shutdown()
        serve_thread.join()
        if not server.wait_for_requests(settings.shutdown_timeout_seconds):
            logger.warning(
                "shutdown_timeout_exceeded",
                timeout=settings.shutdown_timeout_seconds,
                in_flight=server.active_requests,
            )
        server.server_close()
        logger.info("exporter_stopped")


if __name__ == "__main__":
    main()
