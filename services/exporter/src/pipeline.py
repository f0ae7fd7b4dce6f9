import threading
from collections.abc import Callable

import structlog

from .errors import FetchError, ParseError
from .models import Measurement, ScrapeResult
from .parser import parse
from .taipower_client import TaipowerClient

logger = structlog.get_logger()

EmitFn = Callable[[Measurement], None]
LivenessFn = Callable[[bool], None]


class ScrapePipeline:
    """Runs fetch-and-parse cycles against the Taipower feed, one at a time."""

    def __init__(self, client: TaipowerClient | None = None):
        self._client = client or TaipowerClient()
        self._lock = threading.Lock()

    def run_cycle(self, emit: EmitFn, set_liveness: LivenessFn) -> ScrapeResult:
        """Run one cycle, reporting liveness first and then each measurement.

        Fetch and parse failures are logged and reflected in the returned
        result; they are never raised to the caller. A parse failure after
        a successful fetch still counts as up.
        """
        with self._lock:
            try:
                raw = self._client.fetch()
            except FetchError as e:
                set_liveness(False)
                logger.error("scrape_fetch_failed", error=str(e))
                return ScrapeResult.down(str(e))

            set_liveness(True)

            try:
                measurements = parse(raw)
            except ParseError as e:
                logger.error("scrape_parse_failed", error=str(e))
                return ScrapeResult(up=True, error=str(e))

            for measurement in measurements:
                emit(measurement)

            logger.debug("scrape_completed", measurements=len(measurements))
            return ScrapeResult.parsed(measurements)
