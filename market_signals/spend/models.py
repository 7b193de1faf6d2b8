"""Result types for spend guard checks and alerts."""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class SpendCheckResult:
    """Daily pre-flight verdict for one provider."""

    allowed: bool
    requests_remaining: int
    new_records_remaining: int
    reason: Optional[str] = None


@dataclass
class WeeklySpendCheckResult:
    """Trailing seven-day verdict for one provider."""

    allowed: bool
    weekly_requests: int
    weekly_cap: int


@dataclass
class SpendAlert:
    """Raised once per provider per day when usage crosses the alert threshold.

    Attributes:
        provider: Provider name
        day: Ledger day (UTC)
        requests_made: Requests recorded so far today
        max_requests: Daily request cap
        new_records_ingested: New records recorded so far today
        max_new_records: Daily new-record cap
        usage_ratio: Larger of the two usage ratios
        message: Human-readable summary stored on the ledger row
    """

    provider: str
    day: date
    requests_made: int
    max_requests: int
    new_records_ingested: int
    max_new_records: int
    usage_ratio: float
    message: str

    @property
    def usage_percent(self) -> int:
        return int(round(self.usage_ratio * 100))
