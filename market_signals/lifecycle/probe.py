"""HTTP liveness probe for apply URLs.

Every outbound call carries a bounded timeout and there are no retries: a
failed probe is a definitive negative for this cycle.
"""

import re
from typing import Optional

import requests

from market_signals.domain.models import UrlStatus
from market_signals.logging import get_logger

logger = get_logger(__name__, component="probe")

DEFAULT_TIMEOUT = 10
BODY_SCAN_CHARS = 5000
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; MarketSignalPipeline/1.0)"

CLOSED_PAGE_PATTERNS = [
    re.compile(r"job.*(?:no longer|has been|is no longer)\s+available", re.IGNORECASE),
    re.compile(r"this.*(?:position|job|listing).*(?:has been|is)\s+(?:closed|filled|removed)", re.IGNORECASE),
    re.compile(r"page\s+not\s+found", re.IGNORECASE),
    re.compile(r"404"),
    re.compile(r"expired", re.IGNORECASE),
    re.compile(r"we.*couldn't\s+find", re.IGNORECASE),
]

_CLOSED_LOCATION_MARKERS = ("expired", "closed", "not-found", "404")


def is_closed_redirect(location: Optional[str]) -> bool:
    """Whether a redirect target looks like a "job closed" page or a generic listing."""
    lower = (location or "").lower()
    if any(marker in lower for marker in _CLOSED_LOCATION_MARKERS):
        return True
    return "/jobs" in lower and "/job/" not in lower


def looks_closed(body: str) -> bool:
    head = body[:BODY_SCAN_CHARS]
    return any(pattern.search(head) for pattern in CLOSED_PAGE_PATTERNS)


class UrlProbe:
    """Three-valued URL liveness check over a shared requests.Session."""

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def check(self, url: str) -> UrlStatus:
        """Classify ``url`` as ALIVE, DEAD or REDIRECT. Never raises.

        HEAD without following redirects first; statuses HEAD cannot settle
        (403, 405, ...) fall back to a GET whose body is scanned for
        closed-posting phrases.
        """
        try:
            response = self.session.head(url, allow_redirects=False, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.debug(f"HEAD timed out for {url}", extra={"event": "probe.timeout"})
            return UrlStatus.DEAD
        except requests.exceptions.RequestException as e:
            logger.debug(f"HEAD failed for {url}: {e}", extra={"event": "probe.head_failed"})
            return self._check_with_get(url)

        status = response.status_code
        if 200 <= status < 300:
            return UrlStatus.ALIVE
        if 300 <= status < 400:
            if is_closed_redirect(response.headers.get("Location")):
                return UrlStatus.DEAD
            return UrlStatus.REDIRECT
        if status in (404, 410):
            return UrlStatus.DEAD
        return self._check_with_get(url)

    def is_reachable(self, url: str) -> bool:
        """Live HEAD following redirects; True only for a final 2xx/3xx response."""
        try:
            response = self.session.head(url, allow_redirects=True, timeout=self.timeout)
        except requests.exceptions.RequestException:
            return False
        return response.ok

    def _check_with_get(self, url: str) -> UrlStatus:
        try:
            response = self.session.get(url, allow_redirects=True, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.debug(f"GET failed for {url}: {e}", extra={"event": "probe.get_failed"})
            return UrlStatus.DEAD

        if response.status_code in (404, 410):
            return UrlStatus.DEAD
        if response.ok:
            return UrlStatus.DEAD if looks_closed(response.text or "") else UrlStatus.ALIVE
        return UrlStatus.REDIRECT
