"""Base provider class with shared HTTP, HTML and timestamp handling.

Providers are thin, synchronous fetchers: they turn a feed's JSON into
RawSignal objects and leave classification, scoring and persistence to the
pipeline.
"""

import html
import logging
import re
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import requests

from market_signals.domain.models import RawSignal
from market_signals.logging import get_logger
from market_signals.utils.timestamps import parse_iso_datetime

from .exceptions import (
    ProviderConfigurationError,
    ProviderHTTPError,
    ProviderResponseError,
    ProviderTimeoutError,
)

logger = get_logger(__name__, component="provider")


class BaseProvider(ABC):
    """Base class for all job-feed providers.

    Attributes:
        SOURCE: Upper-case source name written on every RawSignal
        timeout: HTTP request timeout in seconds
        user_agent: User-Agent header for HTTP requests
        max_results: Maximum records returned per fetch (0 = unlimited)
        request_delay: Pause between consecutive requests, in seconds
    """

    SOURCE = ""

    def __init__(
        self,
        timeout: int = 10,
        user_agent: str = "MarketSignalPipeline/1.0",
        max_results: int = 1000,
        request_delay: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the provider.

        Raises:
            ProviderConfigurationError: If timeout is outside 1-300s or user_agent is empty
        """
        if not 1 <= timeout <= 300:
            raise ProviderConfigurationError(
                f"Timeout must be between 1 and 300 seconds, got: {timeout}"
            )
        if not user_agent or not user_agent.strip():
            raise ProviderConfigurationError("user_agent cannot be empty")

        self.timeout = timeout
        self.user_agent = user_agent.strip()
        self.max_results = max_results
        self.request_delay = request_delay
        self._sleep = sleep

        self._session = requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})

    @property
    def name(self) -> str:
        return self.SOURCE

    def is_configured(self) -> bool:
        """Whether the provider has the credentials it needs to run."""
        return True

    @abstractmethod
    def fetch_jobs(self, queries: List[str]) -> List[RawSignal]:
        """Fetch raw postings for ``queries``.

        Returns:
            RawSignal list (records with blank title/company are passed through;
            the pipeline counts them as skipped)

        Raises:
            ProviderError: When the feed cannot be read at all this cycle
        """

    def _make_request(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """GET ``url`` and return the parsed JSON body.

        Raises:
            ProviderHTTPError: On 4xx/5xx or connection failure
            ProviderTimeoutError: On timeout
            ProviderResponseError: On a body that is not JSON
        """
        try:
            logger.debug(
                f"HTTP GET {url}",
                extra={"event": "provider.fetch.request", "url": url, "timeout": self.timeout},
            )
            response = self._session.get(url, headers=headers, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={"event": "provider.fetch.timeout", "url": url},
            )
            raise ProviderTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds", url=url
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={"event": "provider.fetch.error", "error_type": type(e).__name__, "url": url},
            )
            raise ProviderHTTPError(f"Request to {url} failed: {e}", status_code=0, url=url) from e

        if response.status_code >= 400:
            retryable = response.status_code >= 500 or response.status_code == 429
            logger.log(
                logging.WARNING if retryable else logging.ERROR,
                f"HTTP {response.status_code} error from {url}",
                extra={
                    "event": "provider.fetch.retryable_error" if retryable else "provider.fetch.error",
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            raise ProviderHTTPError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=url,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderResponseError(f"Failed to parse JSON response from {url}: {e}") from e

    def _pause(self) -> None:
        if self.request_delay:
            self._sleep(self.request_delay)

    @staticmethod
    def _clean_html(html_text: Optional[str]) -> str:
        """Decode entities, turn <br>/</p> into newlines and strip remaining tags."""
        if not html_text:
            return ""
        text = html.unescape(html_text)
        text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
        text = re.sub(r"</p>", "\n\n", text, flags=re.IGNORECASE)
        text = re.sub(r"<[^>]+>", " ", text)
        text = re.sub(r"[ \t]+", " ", text)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text.strip()

    @staticmethod
    def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
        """Parse an ISO 8601 string to aware UTC; None on failure."""
        if not value:
            return None
        parsed = parse_iso_datetime(str(value))
        if parsed is None:
            logger.warning("Failed to parse timestamp", extra={"timestamp": value})
        return parsed

    def _truncate(self, signals: List[RawSignal]) -> List[RawSignal]:
        if self.max_results > 0 and len(signals) > self.max_results:
            logger.warning(
                "Truncating results to max_results limit",
                extra={"provider": self.SOURCE, "total": len(signals), "max": self.max_results},
            )
            return signals[: self.max_results]
        return signals
