"""Builders for persisted-signal test data."""

from datetime import datetime, timezone
from typing import Any, Dict

from market_signals.domain.models import EmploymentType, MarketSignal
from market_signals.utils.hashing import compute_signal_key

DEFAULT_SEEN_AT = datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)


def make_market_signal(
    source: str = "JSEARCH", external_id: str = "job-1", **overrides: Any
) -> MarketSignal:
    """Build a MarketSignal with plausible defaults; the key follows source/external_id."""
    fields: Dict[str, Any] = {
        "signal_key": compute_signal_key(source, external_id),
        "source": source,
        "external_id": external_id,
        "title": "Senior Python Developer",
        "company": "Acme Corp",
        "description": "C2C contract. " + "Python and AWS services. " * 10,
        "location": "Austin, TX",
        "apply_url": f"https://careers.acme.com/jobs/{external_id}",
        "employment_type": EmploymentType.C2C,
        "employment_confidence": 1.0,
        "fingerprint": f"fp-{external_id}",
        "realness_score": 60,
        "actionability_score": 70,
        "first_seen_at": DEFAULT_SEEN_AT,
        "last_seen_at": DEFAULT_SEEN_AT,
    }
    fields.update(overrides)
    return MarketSignal(**fields)
