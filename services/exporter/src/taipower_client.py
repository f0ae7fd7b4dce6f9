import time

import httpx
import structlog

from .config import settings
from .errors import FetchError

logger = structlog.get_logger()


class TaipowerClient:
    """Client for fetching the regional load CSV from Taipower."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._url = url or settings.taipower_data_url
        self._timeout = timeout if timeout is not None else settings.fetch_timeout_seconds
        self._transport = transport

    @property
    def url(self) -> str:
        return self._url

    @property
    def timeout(self) -> float:
        return self._timeout

    def fetch(self) -> bytes:
        """Fetch the raw feed body.

        The timeout bounds the whole request, redirects and body included.
        Raises FetchError on transport failures, when the deadline passes,
        and on any final status other than 200. The response is closed
        before returning or raising.
        """
        deadline = time.monotonic() + self._timeout
        body = bytearray()

        try:
            with httpx.Client(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                logger.debug("fetching_taipower_feed", url=self._url)
                with client.stream("GET", self._url) as response:
                    if response.status_code != httpx.codes.OK:
                        raise FetchError(
                            f"expected 200 response from {self._url}, "
                            f"got {response.status_code}"
                        )

                    for chunk in response.iter_bytes():
                        if time.monotonic() > deadline:
                            break
                        body.extend(chunk)

                    if time.monotonic() > deadline:
                        raise FetchError(
                            f"failed to get {self._url}: timed out after {self._timeout}s"
                        )
        except httpx.HTTPError as e:
            raise FetchError(f"failed to get {self._url}: {e}") from e

        return bytes(body)
