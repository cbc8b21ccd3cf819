# backend/catalogue/pipeline/fetcher.py
import time

import httpx

from .errors import FetchFailure, TimeoutFailure
from ..utils.logging import pipeline_logger


class BinaryFetcher:
    """Retrieves a catalogue's source bytes from its content-store URL.

    Transient failures (connection errors, timeouts, 5xx responses) are
    retried up to ``retries`` extra times. Client errors are not retried.
    A caller-supplied ``httpx.AsyncClient`` is used as-is and left open.
    """

    def __init__(self, timeout: float = 30.0, retries: int = 0, client: httpx.AsyncClient | None = None):
        self.timeout = timeout
        self.retries = max(0, retries)
        self._client = client

    async def fetch(self, url: str) -> bytes:
        start_time = time.perf_counter()
        last_error: Exception | None = None

        for attempt in range(self.retries + 1):
            try:
                data = await self._fetch_once(url)
                pipeline_logger.info("Fetched document bytes", extra={
                    "url": url,
                    "byte_size": len(data),
                    "attempt": attempt + 1,
                    "execution_time_ms": round((time.perf_counter() - start_time) * 1000, 2)
                })
                return data
            except (FetchFailure, TimeoutFailure) as e:
                last_error = e
                if not self._is_transient(e):
                    break
                pipeline_logger.warning("Transient fetch failure", extra={
                    "url": url,
                    "attempt": attempt + 1,
                    "error": e.message
                })

        pipeline_logger.error("Giving up fetching document", extra={
            "url": url,
            "error": str(last_error)
        })
        raise last_error

    async def _fetch_once(self, url: str) -> bytes:
        if self._client is not None:
            return await self._get(self._client, url)

        async with httpx.AsyncClient(follow_redirects=True, timeout=self.timeout) as client:
            return await self._get(client, url)

    async def _get(self, client: httpx.AsyncClient, url: str) -> bytes:
        try:
            response = await client.get(url, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise TimeoutFailure(f"Timed out fetching {url}", stage="fetch") from e
        except httpx.HTTPError as e:
            raise FetchFailure(f"Network error fetching {url}: {e}") from e

        if not response.is_success:
            raise FetchFailure(
                f"Content store returned HTTP {response.status_code} for {url}",
                status_code=response.status_code
            )

        data = response.content
        expected = response.headers.get("content-length")
        if expected is not None and expected.isdigit() and len(data) < int(expected):
            raise FetchFailure(f"Truncated body for {url}: got {len(data)} of {expected} bytes")
        if not data:
            raise FetchFailure(f"Empty body for {url}")

        return data

    @staticmethod
    def _is_transient(error: Exception) -> bool:
        if isinstance(error, TimeoutFailure):
            return True
        status_code = getattr(error, "status_code", None)
        return status_code is None or status_code >= 500
