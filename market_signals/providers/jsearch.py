"""JSearch (RapidAPI) provider."""

from typing import Any, Dict, List, Optional

from market_signals.domain.models import LocationType, RawSignal
from market_signals.logging import get_logger

from .base import BaseProvider
from .exceptions import ProviderError, ProviderResponseError

logger = get_logger(__name__, component="provider")


class JSearchProvider(BaseProvider):
    """Contractor postings aggregated by JSearch.

    One request per query. A failing query is logged and skipped; the fetch
    only fails as a whole when every query failed.

    API Details:
        Endpoint: https://jsearch.p.rapidapi.com/search
        Authentication: X-RapidAPI-Key header (RAPIDAPI_KEY)
        Response: {"status": "OK", "data": [...]}
    """

    SOURCE = "JSEARCH"
    API_URL = "https://jsearch.p.rapidapi.com/search"
    API_HOST = "jsearch.p.rapidapi.com"

    def __init__(self, api_key: Optional[str] = None, num_pages: int = 3, **kwargs) -> None:
        super().__init__(**kwargs)
        self.api_key = api_key
        self.num_pages = num_pages

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def fetch_jobs(self, queries: List[str]) -> List[RawSignal]:
        if not self.is_configured():
            logger.warning(
                "RAPIDAPI_KEY not set, skipping JSearch",
                extra={"event": "provider.fetch.unconfigured", "provider": self.SOURCE},
            )
            return []

        headers = {"X-RapidAPI-Key": self.api_key, "X-RapidAPI-Host": self.API_HOST}
        signals: List[RawSignal] = []
        failures: List[ProviderError] = []

        for index, query in enumerate(queries):
            if index:
                self._pause()
            params = {
                "query": query,
                "page": 1,
                "num_pages": self.num_pages,
                "date_posted": "today",
                "remote_jobs_only": "false",
                "employment_types": "CONTRACTOR",
            }
            try:
                payload = self._make_request(self.API_URL, headers=headers, params=params)
                if not isinstance(payload, dict):
                    raise ProviderResponseError(
                        f"Expected JSON object response, got {type(payload).__name__}"
                    )
            except ProviderError as e:
                failures.append(e)
                logger.warning(
                    f"JSearch query failed: {query}",
                    extra={"event": "provider.query.failed", "provider": self.SOURCE,
                           "query": query, "error": str(e)},
                )
                continue

            for job in payload.get("data") or []:
                if not isinstance(job, dict) or not job.get("job_id"):
                    continue
                try:
                    signals.append(self._transform(job))
                except (KeyError, ValueError, TypeError) as e:
                    logger.warning(
                        "Failed to transform JSearch job",
                        extra={"provider": self.SOURCE, "job_id": job.get("job_id"),
                               "error": str(e)},
                    )

        if queries and len(failures) == len(queries):
            raise failures[-1]

        logger.info(
            f"Fetched {len(signals)} postings from JSearch across {len(queries)} queries",
            extra={"event": "provider.fetch.completed", "provider": self.SOURCE,
                   "count": len(signals), "failed_queries": len(failures)},
        )
        return self._truncate(signals)

    def _transform(self, job: Dict[str, Any]) -> RawSignal:
        location_parts = [job.get("job_city"), job.get("job_state"), job.get("job_country")]
        location = ", ".join(part for part in location_parts if part)
        posted = self._parse_timestamp(job.get("job_posted_at_datetime_utc"))

        return RawSignal(
            source=self.SOURCE,
            external_id=str(job["job_id"]),
            title=job.get("job_title"),
            company=job.get("employer_name") or "Unknown",
            description=job.get("job_description"),
            location=location or None,
            location_type=LocationType.REMOTE if job.get("job_is_remote") else LocationType.ONSITE,
            apply_url=job.get("job_apply_link"),
            source_url=job.get("job_google_link"),
            posted_at=posted,
            source_posted_at=posted,
            expires_at=self._parse_timestamp(job.get("job_offer_expiration_datetime_utc")),
            salary_min=job.get("job_min_salary"),
            salary_max=job.get("job_max_salary"),
            salary_is_hourly=job.get("job_salary_period") == "HOUR",
            raw_payload=job,
        )
