"""Per-provider request and ingestion budgets.

One ledger row per (provider, UTC day), created lazily. Counters only ever
grow within a day; a new day starts a new row. The alert flag on the row makes
the threshold alert fire at most once per provider per day.
"""

from datetime import date, timedelta
from typing import Callable, Optional, Tuple

from market_signals.domain.models import SpendLedgerEntry
from market_signals.logging import get_logger
from market_signals.persistence.repositories import SpendLedgerRepository
from market_signals.utils.timestamps import utc_today

from .models import SpendAlert, SpendCheckResult, WeeklySpendCheckResult

logger = get_logger(__name__, component="spend")

DEFAULT_ALERT_THRESHOLD = 0.8
WEEK_DAYS = 7

CapsLookup = Callable[[str], Tuple[int, int]]
AlertCallback = Callable[[SpendAlert], None]


def _ratio(used: int, cap: int) -> float:
    if cap <= 0:
        return 1.0
    return used / cap


class SpendGuard:
    """Daily and weekly budget checks plus post-flight usage recording."""

    def __init__(
        self,
        ledger_repo: SpendLedgerRepository,
        caps_for: CapsLookup,
        alert_callback: Optional[AlertCallback] = None,
        today: Optional[Callable[[], date]] = None,
        alert_threshold: float = DEFAULT_ALERT_THRESHOLD,
    ):
        """Initialize the guard.

        Args:
            ledger_repo: Repository bound to the caller's session
            caps_for: Returns (daily request cap, daily new-record cap) for a provider.
                Looked up on every call so config changes apply to today's row.
            alert_callback: Invoked once when a provider crosses the threshold
            today: Returns the current ledger day (defaults to UTC today)
            alert_threshold: Usage ratio that fires the alert
        """
        self.ledger_repo = ledger_repo
        self.caps_for = caps_for
        self.alert_callback = alert_callback
        self.today = today or utc_today
        self.alert_threshold = alert_threshold

    def check(self, provider: str) -> SpendCheckResult:
        """Pre-flight daily check. Blocks when either remaining budget is <= 0."""
        entry = self._today_entry(provider)
        requests_remaining = entry.max_requests - entry.requests_made
        new_records_remaining = entry.max_new_records - entry.new_records_ingested

        if requests_remaining <= 0:
            return SpendCheckResult(
                allowed=False,
                requests_remaining=0,
                new_records_remaining=new_records_remaining,
                reason=f"Daily request cap reached ({entry.max_requests})",
            )
        if new_records_remaining <= 0:
            return SpendCheckResult(
                allowed=False,
                requests_remaining=requests_remaining,
                new_records_remaining=0,
                reason=f"Daily new jobs cap reached ({entry.max_new_records})",
            )
        return SpendCheckResult(
            allowed=True,
            requests_remaining=requests_remaining,
            new_records_remaining=new_records_remaining,
        )

    def check_weekly(self, provider: str) -> WeeklySpendCheckResult:
        """Trailing seven-day check (today and the six days before it).

        The weekly cap is seven times the daily request cap.
        """
        max_requests, _ = self.caps_for(provider)
        first_day = self.today() - timedelta(days=WEEK_DAYS - 1)
        weekly_requests = self.ledger_repo.sum_requests_since(provider, first_day)
        weekly_cap = max_requests * WEEK_DAYS
        return WeeklySpendCheckResult(
            allowed=weekly_requests < weekly_cap,
            weekly_requests=weekly_requests,
            weekly_cap=weekly_cap,
        )

    def record(self, provider: str, requests: int, new_records: int) -> SpendLedgerEntry:
        """Add usage to today's row and fire the threshold alert at most once.

        Args:
            provider: Provider name
            requests: Requests made by the finished batch
            new_records: Records newly created (not updated) by the batch

        Returns:
            Ledger entry after the increment
        """
        entry = self._today_entry(provider)
        entry = self.ledger_repo.increment(provider, entry.day, requests, new_records)

        logger.info(
            f"Recorded spend for {provider}: {entry.requests_made}/{entry.max_requests} requests, "
            f"{entry.new_records_ingested}/{entry.max_new_records} new records",
            extra={
                "event": "spend.recorded",
                "provider": provider,
                "requests": requests,
                "new_records": new_records,
            },
        )

        if not entry.alert_fired:
            self._maybe_alert(entry)
        return self.ledger_repo.get(provider, entry.day) or entry

    def _today_entry(self, provider: str) -> SpendLedgerEntry:
        max_requests, max_new_records = self.caps_for(provider)
        return self.ledger_repo.get_or_create(provider, self.today(), max_requests, max_new_records)

    def _maybe_alert(self, entry: SpendLedgerEntry) -> None:
        request_ratio = _ratio(entry.requests_made, entry.max_requests)
        record_ratio = _ratio(entry.new_records_ingested, entry.max_new_records)
        usage = max(request_ratio, record_ratio)
        if usage < self.alert_threshold:
            return

        message = (
            f"{entry.provider} at {int(round(usage * 100))}% of daily budget "
            f"(requests: {entry.requests_made}/{entry.max_requests}, "
            f"new records: {entry.new_records_ingested}/{entry.max_new_records})"
        )
        if not self.ledger_repo.mark_alert_fired(entry.provider, entry.day, message):
            return

        logger.warning(
            message,
            extra={"event": "spend.alert.fired", "provider": entry.provider, "usage_ratio": usage},
        )

        if self.alert_callback is None:
            return
        alert = SpendAlert(
            provider=entry.provider,
            day=entry.day,
            requests_made=entry.requests_made,
            max_requests=entry.max_requests,
            new_records_ingested=entry.new_records_ingested,
            max_new_records=entry.max_new_records,
            usage_ratio=usage,
            message=message,
        )
        try:
            self.alert_callback(alert)
        except Exception as e:
            logger.error(
                f"Spend alert delivery failed for {entry.provider}: {e}",
                exc_info=True,
                extra={"event": "spend.alert.delivery_failed", "provider": entry.provider},
            )
