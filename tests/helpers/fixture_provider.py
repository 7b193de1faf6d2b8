"""Fixture-based provider for testing.

This module provides a provider that serves postings from YAML fixtures or
in-memory dicts instead of calling a real feed. Used for deterministic
pipeline and integration tests.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from market_signals.domain.models import RawSignal
from market_signals.providers.base import BaseProvider
from market_signals.providers.exceptions import ProviderError


def load_fixture_signals(fixture_path: Path) -> Dict[str, List[Dict[str, Any]]]:
    """Load posting fixtures from a YAML file.

    Args:
        fixture_path: YAML file with a top-level ``providers`` mapping

    Returns:
        Dictionary mapping provider names to lists of posting dicts

    Raises:
        FileNotFoundError: If fixture file doesn't exist
    """
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture file not found: {fixture_path}")

    with open(fixture_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return data.get("providers", {})


def make_raw_signal(source: str = "JSEARCH", external_id: str = "job-1", **overrides) -> RawSignal:
    """Build a RawSignal with realistic defaults for a C2C contract posting."""
    fields: Dict[str, Any] = {
        "source": source,
        "external_id": external_id,
        "title": "Senior Python Developer",
        "company": "Acme Corp",
        "description": (
            "C2C contract role. Rate $70-90/hr. Build Python and AWS services "
            "with Docker and Kubernetes for a 12 month engagement in Austin."
        ),
        "location": "Austin, TX",
        "apply_url": "https://careers.acme.com/jobs/123",
    }
    fields.update(overrides)
    return RawSignal(**fields)


class FixtureProvider(BaseProvider):
    """Provider that returns canned postings.

    Attributes:
        records: Posting dicts (RawSignal field names) served on every fetch
        error: If set, fetch_jobs() raises it instead of returning records
        calls: Queries passed to each fetch_jobs() call
    """

    def __init__(
        self,
        source: str,
        records: Optional[List[Dict[str, Any]]] = None,
        error: Optional[ProviderError] = None,
        configured: bool = True,
        **kwargs,
    ):
        kwargs.setdefault("request_delay", 0)
        super().__init__(**kwargs)
        self.SOURCE = source
        self.records = list(records or [])
        self.error = error
        self.configured = configured
        self.calls: List[List[str]] = []

    @classmethod
    def from_yaml(cls, fixture_path: Path, source: str, **kwargs) -> "FixtureProvider":
        return cls(source, records=load_fixture_signals(fixture_path).get(source, []), **kwargs)

    def is_configured(self) -> bool:
        return self.configured

    def fetch_jobs(self, queries: List[str]) -> List[RawSignal]:
        self.calls.append(list(queries))
        if self.error is not None:
            raise self.error

        signals = []
        for record in self.records:
            fields = dict(record)
            for key in ("posted_at", "source_posted_at", "expires_at"):
                fields[key] = self._parse_fixture_timestamp(fields.get(key))
            signals.append(RawSignal(source=self.SOURCE, **fields))
        return self._truncate(signals)

    def _parse_fixture_timestamp(self, value: Optional[Any]) -> Optional[datetime]:
        """Accept datetimes (YAML parses ISO timestamps itself) or ISO strings."""
        if value is None:
            return None
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value.astimezone(timezone.utc)
        return self._parse_timestamp(str(value))
