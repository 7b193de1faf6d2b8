"""Arbeitnow job-board provider (free, no API key)."""

import re
from typing import Any, Dict, Iterable, List, Optional

from market_signals.domain.models import LocationType, RawSignal
from market_signals.logging import get_logger
from market_signals.utils.timestamps import from_unix

from .base import BaseProvider
from .exceptions import ProviderError, ProviderResponseError

logger = get_logger(__name__, component="provider")

IT_KEYWORDS = re.compile(
    r"\b(?:engineer|developer|devops|sre|architect|analyst|data|cloud|security|cyber|"
    r"software|fullstack|full[\s-]?stack|backend|frontend|platform|infrastructure|"
    r"QA|SDET|ML|AI|machine\s*learning)\b",
    re.IGNORECASE,
)


def is_it_role(title: Optional[str], tags: Optional[Iterable[str]]) -> bool:
    """Whether the title or any tag reads like an IT/engineering role."""
    if title and IT_KEYWORDS.search(title):
        return True
    return any(IT_KEYWORDS.search(tag) for tag in (tags or []) if isinstance(tag, str))


class ArbeitnowProvider(BaseProvider):
    """Aggregated postings from the public Arbeitnow board.

    The feed ignores search queries; it is paged, and only IT roles are kept.

    API Details:
        Endpoint: https://www.arbeitnow.com/api/job-board-api?page=N
        Authentication: None
        Response: {"data": [...], "meta": {"current_page": N, "last_page": M}}
    """

    SOURCE = "ARBEITNOW"
    API_URL = "https://www.arbeitnow.com/api/job-board-api"

    def __init__(self, max_pages: int = 3, **kwargs) -> None:
        kwargs.setdefault("request_delay", 1.0)
        super().__init__(**kwargs)
        self.max_pages = max_pages

    def fetch_jobs(self, queries: List[str]) -> List[RawSignal]:
        signals: List[RawSignal] = []

        for page in range(1, self.max_pages + 1):
            try:
                payload = self._make_request(self.API_URL, params={"page": page})
            except ProviderError:
                # A later page failing keeps what earlier pages returned
                if page == 1:
                    raise
                logger.warning(
                    f"Arbeitnow page {page} failed; keeping {len(signals)} records",
                    extra={"event": "provider.fetch.partial", "provider": self.SOURCE, "page": page},
                )
                break

            if not isinstance(payload, dict):
                raise ProviderResponseError(
                    f"Expected JSON object response, got {type(payload).__name__}"
                )

            for job in payload.get("data") or []:
                if not isinstance(job, dict) or not is_it_role(job.get("title"), job.get("tags")):
                    continue
                try:
                    signals.append(self._transform(job))
                except (KeyError, ValueError, TypeError) as e:
                    logger.warning(
                        "Failed to transform Arbeitnow job",
                        extra={"provider": self.SOURCE, "job_id": job.get("slug"), "error": str(e)},
                    )

            meta = payload.get("meta") or {}
            last_page = meta.get("last_page")
            if isinstance(last_page, int) and page >= last_page:
                break
            if page < self.max_pages:
                self._pause()

        logger.info(
            f"Fetched {len(signals)} IT postings from Arbeitnow",
            extra={"event": "provider.fetch.completed", "provider": self.SOURCE, "count": len(signals)},
        )
        return self._truncate(signals)

    def _transform(self, job: Dict[str, Any]) -> RawSignal:
        posted = from_unix(job.get("created_at"))
        return RawSignal(
            source=self.SOURCE,
            external_id=str(job["slug"]),
            title=job.get("title"),
            company=job.get("company_name") or "Unknown",
            description=self._clean_html(job.get("description")),
            location=job.get("location"),
            location_type=LocationType.REMOTE if job.get("remote") else LocationType.ONSITE,
            apply_url=job.get("url"),
            source_url=job.get("url"),
            posted_at=posted,
            source_posted_at=posted,
            raw_payload=job,
        )
