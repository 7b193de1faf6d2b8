"""Data models for sync run tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class ProviderRunStats:
    """
    Statistics for a single provider within a sync run.

    Attributes:
        provider: Provider name (e.g. "JSEARCH")
        queries: Number of queries sent (the request count recorded as spend)
        fetched: Raw records returned by the provider
        inserted: Signals created on first sighting
        updated: Existing signals overwritten
        skipped: Records rejected (missing title/company) or failed to upsert
        deduped: New signals that joined a canonical record seen before
        blocked_reason: Why the provider did not run (disabled, spend cap, ...)
        error_message: Fetch failure message, if the provider failed
        duration_seconds: Time spent on this provider
    """

    provider: str
    queries: int = 0
    fetched: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    deduped: int = 0
    blocked_reason: Optional[str] = None
    error_message: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def ran(self) -> bool:
        return self.blocked_reason is None and self.error_message is None

    @property
    def had_errors(self) -> bool:
        return self.error_message is not None


@dataclass
class SyncRunResult:
    """
    Aggregate results from one market sync.

    Attributes:
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        provider_stats: Per-provider statistics, in processing order
        total_fetched / total_inserted / total_updated / total_skipped / total_deduped:
            Sums over provider_stats
        stale: Signals demoted to STALE by the closing sweep
        expired: Signals moved to EXPIRED by the closing sweep
        had_errors: Whether any provider failed
        skipped: Whether the run was skipped because another run held the lock
    """

    run_started_at: datetime
    run_finished_at: datetime
    total_duration_seconds: float = 0.0
    provider_stats: List[ProviderRunStats] = field(default_factory=list)
    total_fetched: int = 0
    total_inserted: int = 0
    total_updated: int = 0
    total_skipped: int = 0
    total_deduped: int = 0
    stale: int = 0
    expired: int = 0
    had_errors: bool = False
    skipped: bool = False

    def __post_init__(self):
        """Aggregate totals from provider stats and compute the duration."""
        if self.provider_stats:
            self.total_fetched = sum(s.fetched for s in self.provider_stats)
            self.total_inserted = sum(s.inserted for s in self.provider_stats)
            self.total_updated = sum(s.updated for s in self.provider_stats)
            self.total_skipped = sum(s.skipped for s in self.provider_stats)
            self.total_deduped = sum(s.deduped for s in self.provider_stats)
            self.had_errors = any(s.had_errors for s in self.provider_stats)

        if self.total_duration_seconds == 0.0:
            delta = self.run_finished_at - self.run_started_at
            self.total_duration_seconds = delta.total_seconds()

    def stats_for(self, provider: str) -> Optional[ProviderRunStats]:
        for stats in self.provider_stats:
            if stats.provider == provider:
                return stats
        return None
