"""Signal lifecycle: ACTIVE, STALE and EXPIRED transitions.

- Every successful upsert makes a signal ACTIVE again, unless it is EXPIRED.
- The stale sweep demotes ACTIVE signals unseen for the staleness window,
  but only when they carry no explicit expiry.
- The expiry sweep moves ACTIVE signals past their explicit expiry to EXPIRED.
- A URL probe that confirms a dead apply URL forces EXPIRED.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from market_signals.domain.models import SignalStatus, UrlStatus
from market_signals.logging import get_logger
from market_signals.persistence.repositories import MarketSignalRepository

logger = get_logger(__name__, component="lifecycle")

DEFAULT_STALE_AFTER_DAYS = 14


def status_after_sighting(existing: Optional[SignalStatus]) -> SignalStatus:
    """Status to write when a signal is (re-)ingested.

    EXPIRED is terminal; anything else, STALE included, becomes ACTIVE.
    """
    if existing == SignalStatus.EXPIRED:
        return SignalStatus.EXPIRED
    return SignalStatus.ACTIVE


@dataclass
class SweepResult:
    stale: int = 0
    expired: int = 0


class LifecycleManager:
    """Runs the time-driven sweeps and applies probe-driven expiry."""

    def __init__(
        self,
        signal_repo: MarketSignalRepository,
        stale_after_days: int = DEFAULT_STALE_AFTER_DAYS,
    ):
        self.signal_repo = signal_repo
        self.stale_after_days = stale_after_days

    def sweep_stale(self, now: datetime) -> int:
        """Demote ACTIVE signals last seen before ``now - stale_after_days``.

        Returns:
            Number of signals marked STALE
        """
        cutoff = now - timedelta(days=self.stale_after_days)
        count = self.signal_repo.mark_stale(cutoff)
        logger.info(
            f"Marked {count} signals STALE (last seen before {cutoff.isoformat()})",
            extra={"event": "lifecycle.sweep.stale", "count": count},
        )
        return count

    def sweep_expired(self, now: datetime) -> int:
        """Expire ACTIVE signals whose explicit expiry is before ``now``.

        Returns:
            Number of signals marked EXPIRED
        """
        count = self.signal_repo.mark_expired(now)
        logger.info(
            f"Marked {count} signals EXPIRED",
            extra={"event": "lifecycle.sweep.expired", "count": count},
        )
        return count

    def run_sweeps(self, now: datetime) -> SweepResult:
        """Stale sweep followed by the expiry sweep."""
        result = SweepResult(stale=self.sweep_stale(now), expired=self.sweep_expired(now))
        logger.info(
            "Lifecycle sweep completed",
            extra={"event": "lifecycle.sweep.completed", "stale": result.stale, "expired": result.expired},
        )
        return result

    def apply_probe_result(self, signal_key: str, url_status: UrlStatus, checked_at: datetime) -> None:
        """Store a probe result; a DEAD URL expires the signal.

        Raises:
            RecordNotFoundError: If the signal does not exist
        """
        forced = SignalStatus.EXPIRED if url_status == UrlStatus.DEAD else None
        self.signal_repo.update_url_status(signal_key, url_status, checked_at, status=forced)
        if forced is not None:
            logger.info(
                f"Signal {signal_key} expired: apply URL is dead",
                extra={"event": "lifecycle.probe.expired", "signal_key": signal_key},
            )
