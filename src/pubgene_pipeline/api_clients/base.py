"""HTTP client for NCBI E-utilities with retry, rate limiting and opt-in caching."""

import logging
import time
from pathlib import Path

import requests
import requests_cache
from requests.exceptions import ConnectionError, HTTPError, Timeout
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pubgene_pipeline.config.schema import PipelineConfig

logger = logging.getLogger(__name__)

# Requests per second NCBI allows with and without an API key
NCBI_RATE_LIMIT = 3
NCBI_RATE_LIMIT_WITH_KEY = 10


class CachedAPIClient:
    """
    GET-only client used for esearch requests.

    Search results change daily, so responses are only kept on disk when
    the caller asks for it. Without the cache every call reaches NCBI and
    reports what the index holds at that moment.

    Features:
    - Retry on 429/5xx/network errors and timeouts with exponential backoff
    - Explicit per-request timeout
    - Sleep between live requests to stay under the NCBI rate limit
    - Optional SQLite response cache under cache_dir
    """

    def __init__(
        self,
        cache_dir: Path,
        rate_limit: int = NCBI_RATE_LIMIT,
        max_retries: int = 5,
        cache_ttl: int = 86400,
        timeout: int = 30,
        cache_enabled: bool = False,
    ):
        """
        Args:
            cache_dir: Directory holding the SQLite cache (used only when
                cache_enabled is set)
            rate_limit: Maximum live requests per second
            max_retries: Maximum attempts per request
            cache_ttl: Cache time-to-live in seconds (0 = never expires)
            timeout: Request timeout in seconds
            cache_enabled: Keep responses in a SQLite cache
        """
        self.cache_dir = Path(cache_dir)
        self.rate_limit = rate_limit
        self.max_retries = max_retries
        self.timeout = timeout
        self.cache_enabled = cache_enabled
        self.session = self._build_session(cache_ttl)

    def _build_session(self, cache_ttl: int) -> requests.Session:
        if not self.cache_enabled:
            return requests.Session()

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Caching esearch responses in {self.cache_dir} (TTL {cache_ttl}s)")
        return requests_cache.CachedSession(
            cache_name=str(self.cache_dir / "api_cache"),
            backend="sqlite",
            expire_after=cache_ttl if cache_ttl > 0 else None,
        )

    def _retrying(self):
        return retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=60),
            retry=retry_if_exception_type((HTTPError, Timeout, ConnectionError)),
            reraise=True,
        )

    def get(self, url: str) -> requests.Response:
        """
        GET a fully built URL.

        The URL already carries its query string, so the term keeps the
        exact encoding it was given.

        Raises:
            HTTPError: Non-2xx status after retries are exhausted
            Timeout: Timeout after retries are exhausted
            ConnectionError: Connection failure after retries are exhausted
        """
        @self._retrying()
        def _attempt() -> requests.Response:
            response = self.session.get(url, timeout=self.timeout)
            if response.status_code == 429:
                logger.warning(f"Rate limited by NCBI (429) for {url}; backing off")
            response.raise_for_status()
            return response

        response = _attempt()

        # Cached responses did not touch the network
        if not getattr(response, "from_cache", False):
            time.sleep(1 / self.rate_limit)

        return response

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "CachedAPIClient":
        """Build a client from the api and search sections of the config."""
        rate_limit = config.api.rate_limit_per_second
        if config.search.api_key:
            rate_limit = max(rate_limit, NCBI_RATE_LIMIT_WITH_KEY)

        return cls(
            cache_dir=config.cache_dir,
            rate_limit=rate_limit,
            max_retries=config.api.max_retries,
            cache_ttl=config.api.cache_ttl_seconds,
            timeout=config.api.timeout_seconds,
            cache_enabled=config.api.cache_enabled,
        )
