"""Base API client with retry logic and persistent caching."""

import logging
import time
from pathlib import Path
from typing import Any

import requests
import requests_cache
from requests.exceptions import ConnectionError, HTTPError, Timeout
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from methtracks import __version__
from methtracks.config.schema import PipelineConfig

logger = logging.getLogger(__name__)

CACHE_NAME = "api_cache"


def _is_transient(exc: BaseException) -> bool:
    """Network failures, 429 and 5xx are retried; other 4xx are not."""
    if isinstance(exc, (Timeout, ConnectionError)):
        return True
    if isinstance(exc, HTTPError) and exc.response is not None:
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


class CachedAPIClient:
    """
    HTTP client for JSON REST services, backed by a persistent SQLite cache.

    Transient failures (timeouts, connection errors, 429 and 5xx) are retried
    with exponential backoff; any other HTTP error is raised on the first
    attempt. Only requests that reach the network count against the rate
    limit. Subclasses pass ``default_params`` for query parameters that every
    request of the service carries.
    """

    def __init__(
        self,
        cache_dir: Path,
        rate_limit: int = 5,
        max_retries: int = 5,
        cache_ttl: int = 86400,
        timeout: int = 30,
        default_params: dict[str, Any] | None = None,
    ):
        """
        Args:
            cache_dir: Directory for SQLite cache storage (created if absent)
            rate_limit: Maximum network requests per second
            max_retries: Attempts per request, including the first
            cache_ttl: Cache time-to-live in seconds (0 = never expire)
            timeout: Request timeout in seconds
            default_params: Query parameters merged under every request's own
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.rate_limit = rate_limit
        self.max_retries = max_retries
        self.timeout = timeout
        self.default_params = dict(default_params or {})

        self.session = requests_cache.CachedSession(
            cache_name=str(self.cache_dir / CACHE_NAME),
            backend="sqlite",
            expire_after=cache_ttl if cache_ttl > 0 else None,
        )
        self.session.headers["User-Agent"] = f"methtracks/{__version__}"

    def build_params(self, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Request parameters over the defaults; None values are dropped."""
        merged = {**self.default_params, **(params or {})}
        return {key: value for key, value in merged.items() if value is not None}

    def _retrying(self):
        return retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=60),
            retry=retry_if_exception(_is_transient),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        **kwargs,
    ) -> requests.Response:
        """
        GET a URL through the cache, retrying transient failures.

        Args:
            url: Request URL
            params: Query parameters, merged over ``default_params``
            **kwargs: Additional arguments passed to requests

        Returns:
            Response object (``from_cache`` tells whether the network was used)

        Raises:
            HTTPError: On a non-transient HTTP error, or once retries are exhausted
            Timeout: On timeout after retries exhausted
            ConnectionError: On connection error after retries exhausted
        """
        query = self.build_params(params)

        @self._retrying()
        def _send():
            response = self.session.get(url, params=query, timeout=self.timeout, **kwargs)
            if response.status_code == 429:
                logger.warning(f"Rate limited by API (429) for {url}")
            response.raise_for_status()
            return response

        response = _send()

        if getattr(response, "from_cache", False):
            logger.debug(f"Cache hit for {url}")
        else:
            time.sleep(1 / self.rate_limit)

        return response

    def get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        **kwargs,
    ) -> dict[str, Any]:
        """
        GET a URL and decode its JSON object body.

        Raises:
            ValueError: If the body is not a JSON object
        """
        payload = self.get(url, params=params, **kwargs).json()
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object from {url}, got {type(payload).__name__}")
        return payload

    @classmethod
    def from_config(cls, config: PipelineConfig, **kwargs) -> "CachedAPIClient":
        """
        Create a client from the ``cache_dir`` and ``api`` sections of a config.

        Args:
            config: PipelineConfig instance
            **kwargs: Extra constructor arguments for subclasses

        Returns:
            Configured client instance
        """
        return cls(
            cache_dir=config.cache_dir,
            rate_limit=config.api.rate_limit_per_second,
            max_retries=config.api.max_retries,
            cache_ttl=config.api.cache_ttl_seconds,
            timeout=config.api.timeout_seconds,
            **kwargs,
        )

    def clear_cache(self) -> None:
        """Clear all cached responses."""
        self.session.cache.clear()
        logger.info("API cache cleared")

    def cache_stats(self) -> dict[str, Any]:
        """Location, existence and size of the on-disk cache."""
        cache_path = self.cache_dir / f"{CACHE_NAME}.sqlite"
        stats = {
            "cache_enabled": True,
            "cache_path": str(cache_path),
            "cache_exists": cache_path.exists(),
        }
        if cache_path.exists():
            stats["cache_size_bytes"] = cache_path.stat().st_size
        return stats
