"""Market sync orchestration: fetch, derive, upsert and budget every provider."""

import threading
import time
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy.orm import Session

from market_signals.config.environment import EnvironmentConfig
from market_signals.config.models import AppConfig, ProviderConfig, default_caps_for
from market_signals.dedup.resolver import FingerprintResolver
from market_signals.domain.models import RawSignal, VendorDirectoryEntry
from market_signals.lifecycle.manager import LifecycleManager, SweepResult
from market_signals.logging import get_logger
from market_signals.logging.context import log_context
from market_signals.normalization.service import SignalNormalizer
from market_signals.notifications.service import SpendAlertService
from market_signals.persistence.database import get_session
from market_signals.persistence.repositories import (
    CanonicalRecordRepository,
    MarketSignalRepository,
    SpendLedgerRepository,
    VendorRepository,
)
from market_signals.providers.base import BaseProvider
from market_signals.providers.exceptions import ProviderError
from market_signals.providers.factory import get_provider
from market_signals.spend.guard import AlertCallback, SpendGuard
from market_signals.utils.timestamps import ensure_utc, utc_now
from market_signals.vendors.cache import VendorDirectoryCache
from market_signals.vendors.matcher import VendorMatcher

from .models import ProviderRunStats, SyncRunResult

logger = get_logger(__name__, component="pipeline")


class MarketSyncPipeline:
    """
    Orchestrates one market sync across all configured providers.

    Providers run sequentially in config order so that budget accounting and
    canonical resolution observe every earlier write in the same run. Per
    provider: spend pre-flight (daily, then weekly), fetch, derive and upsert
    each record in its own savepoint, then record spend. After the last
    provider the stale sweep runs, followed by the expiry sweep.
    """

    def __init__(
        self,
        app_config: AppConfig,
        env_config: EnvironmentConfig,
        providers: Optional[Dict[str, BaseProvider]] = None,
        alert_service: Optional[AlertCallback] = None,
        vendor_cache: Optional[VendorDirectoryCache] = None,
    ):
        """
        Initialize the sync pipeline.

        Args:
            app_config: Application configuration
            env_config: Environment configuration (API keys, SMTP)
            providers: Provider instances by name; names not given are built
                with get_provider() on first use
            alert_service: Receives spend alerts (defaults to SpendAlertService)
            vendor_cache: Vendor directory cache (defaults to one reading the
                vendors table with the configured TTL)
        """
        self.app_config = app_config
        self.env_config = env_config
        self._providers: Dict[str, BaseProvider] = dict(providers or {})
        self.alert_service = alert_service or SpendAlertService(env_config)
        self.vendor_cache = vendor_cache or VendorDirectoryCache(
            self._load_vendors, ttl_seconds=app_config.vendors.cache_ttl_seconds
        )
        self.vendor_matcher = VendorMatcher(self.vendor_cache)
        self._lock = threading.Lock()
        # Open batch session; vendor reloads reuse it instead of nesting a second one
        self._batch_session: Optional[Session] = None

    def run_once(self, now: Optional[datetime] = None) -> SyncRunResult:
        """
        Execute one sync of every enabled provider.

        Args:
            now: Observation time for the run (defaults to current UTC time)

        Returns:
            SyncRunResult; provider failures are captured in it, never raised
        """
        run_started_at = ensure_utc(now) if now else utc_now()
        run_id = uuid4().hex

        if not self._lock.acquire(blocking=False):
            with log_context(run_id=run_id):
                logger.warning(
                    "Sync run skipped: previous run still in progress",
                    extra={"event": "pipeline.run.skipped", "reason": "lock_held"},
                )
            return SyncRunResult(
                run_started_at=run_started_at,
                run_finished_at=utc_now(),
                skipped=True,
            )

        try:
            with log_context(run_id=run_id):
                enabled = self.app_config.get_enabled_providers()
                logger.info(
                    "Sync run started",
                    extra={
                        "event": "pipeline.run.started",
                        "enabled_provider_count": len(enabled),
                        "providers": [p.name for p in enabled],
                    },
                )

                guard_day = run_started_at.date()
                provider_stats: List[ProviderRunStats] = []
                for provider_config in self.app_config.providers:
                    stats = self._process_provider(provider_config, run_started_at, guard_day)
                    provider_stats.append(stats)

                sweep = self._run_sweeps(run_started_at)

                result = SyncRunResult(
                    run_started_at=run_started_at,
                    run_finished_at=utc_now(),
                    provider_stats=provider_stats,
                    stale=sweep.stale,
                    expired=sweep.expired,
                )
                logger.info(
                    f"Sync run completed: {result.total_fetched} fetched, "
                    f"{result.total_inserted} inserted, {result.total_updated} updated, "
                    f"{result.total_deduped} deduped, {result.total_skipped} skipped, "
                    f"{result.stale} stale, {result.expired} expired",
                    extra={
                        "event": "pipeline.run.completed",
                        "duration_ms": int(result.total_duration_seconds * 1000),
                        "total_fetched": result.total_fetched,
                        "total_inserted": result.total_inserted,
                        "total_updated": result.total_updated,
                        "total_skipped": result.total_skipped,
                        "total_deduped": result.total_deduped,
                        "stale": result.stale,
                        "expired": result.expired,
                        "had_errors": result.had_errors,
                    },
                )
                return result
        finally:
            self._lock.release()

    def _process_provider(
        self, provider_config: ProviderConfig, seen_at: datetime, guard_day: date
    ) -> ProviderRunStats:
        """Run one provider end to end. Never raises."""
        provider_start = time.time()
        name = provider_config.name
        stats = ProviderRunStats(provider=name)

        with log_context(provider=name):
            try:
                if not provider_config.enabled:
                    stats.blocked_reason = "disabled"
                    logger.debug(f"Skipping disabled provider: {name}")
                    return stats

                provider = self._get_provider(provider_config)
                if not provider.is_configured():
                    stats.blocked_reason = "not configured"
                    logger.info(
                        f"Skipping {name} (not configured)",
                        extra={"event": "provider.run.unconfigured"},
                    )
                    return stats

                blocked = self._preflight(name, guard_day)
                if blocked:
                    stats.blocked_reason = blocked
                    logger.info(
                        f"{name} spend guard blocked: {blocked}",
                        extra={"event": "provider.spend.blocked", "reason": blocked},
                    )
                    return stats

                queries = provider_config.get_queries()
                stats.queries = len(queries)
                logger.info(
                    f"Fetching {name} with {len(queries)} queries",
                    extra={"event": "provider.run.started", "query_count": len(queries)},
                )

                try:
                    raw_signals = provider.fetch_jobs(queries)
                except ProviderError as e:
                    stats.error_message = str(e)
                    logger.error(
                        f"Provider {name} failed: {e}",
                        extra={"event": "provider.run.failed", "error_type": type(e).__name__},
                        exc_info=True,
                    )
                    return stats

                stats.fetched = len(raw_signals)
                self._ingest_batch(raw_signals, stats, seen_at)
                self._record_spend(name, guard_day, stats)

                logger.info(
                    f"{name}: {stats.fetched} fetched, {stats.inserted} inserted, "
                    f"{stats.updated} updated, {stats.deduped} deduped, {stats.skipped} skipped",
                    extra={
                        "event": "provider.run.completed",
                        "fetched": stats.fetched,
                        "inserted": stats.inserted,
                        "updated": stats.updated,
                        "deduped": stats.deduped,
                        "skipped": stats.skipped,
                    },
                )

            except Exception as e:
                # Anything unexpected (database, configuration) only takes this provider down
                stats.error_message = str(e)
                logger.error(
                    f"Unexpected error processing {name}: {e}",
                    extra={"event": "provider.run.failed", "error_type": type(e).__name__},
                    exc_info=True,
                )

            finally:
                stats.duration_seconds = time.time() - provider_start

        return stats

    def _preflight(self, name: str, guard_day: date) -> Optional[str]:
        """Daily then weekly spend check. Returns the block reason, or None."""
        with get_session() as session:
            guard = self._spend_guard(session, guard_day)

            daily = guard.check(name)
            if not daily.allowed:
                return daily.reason

            weekly = guard.check_weekly(name)
            if not weekly.allowed:
                return f"Weekly request cap reached ({weekly.weekly_requests}/{weekly.weekly_cap})"
        return None

    def _ingest_batch(
        self, raw_signals: List[RawSignal], stats: ProviderRunStats, seen_at: datetime
    ) -> None:
        """Derive and upsert every record; each record is its own savepoint."""
        with get_session() as session:
            self._batch_session = session
            try:
                signal_repo = MarketSignalRepository(session)
                normalizer = SignalNormalizer(
                    signal_repo,
                    FingerprintResolver(CanonicalRecordRepository(session)),
                    self.vendor_matcher,
                    scoring_settings=self.app_config.scoring,
                    seen_at=seen_at,
                )

                for raw in raw_signals:
                    if not raw.has_required_fields:
                        stats.skipped += 1
                        continue

                    try:
                        with session.begin_nested():
                            result = normalizer.normalize(raw)
                            _, created = signal_repo.upsert(result.signal)
                    except Exception as e:
                        stats.skipped += 1
                        logger.error(
                            f"Failed to upsert {raw.source}/{raw.external_id}: {e}",
                            extra={
                                "event": "pipeline.signal.failed",
                                "external_id": raw.external_id,
                                "error_type": type(e).__name__,
                            },
                            exc_info=True,
                        )
                        continue

                    if created:
                        stats.inserted += 1
                        if result.is_cross_source_duplicate:
                            stats.deduped += 1
                    else:
                        stats.updated += 1
            finally:
                self._batch_session = None

    def _record_spend(self, name: str, guard_day: date, stats: ProviderRunStats) -> None:
        with get_session() as session:
            self._spend_guard(session, guard_day).record(name, stats.queries, stats.inserted)

    def _run_sweeps(self, now: datetime) -> SweepResult:
        try:
            with get_session() as session:
                manager = LifecycleManager(
                    MarketSignalRepository(session),
                    stale_after_days=self.app_config.lifecycle.stale_after_days,
                )
                return manager.run_sweeps(now)
        except Exception as e:
            logger.error(
                f"Lifecycle sweep failed: {e}",
                extra={"event": "lifecycle.sweep.failed", "error_type": type(e).__name__},
                exc_info=True,
            )
            return SweepResult()

    def _spend_guard(self, session: Session, guard_day: date) -> SpendGuard:
        return SpendGuard(
            SpendLedgerRepository(session),
            self._caps_for,
            alert_callback=self.alert_service,
            today=lambda: guard_day,
            alert_threshold=self.app_config.spend.alert_threshold,
        )

    def _caps_for(self, name: str) -> Tuple[int, int]:
        provider_config = self.app_config.get_provider(name)
        if provider_config is None:
            return default_caps_for(name)
        return provider_config.max_requests_per_day, provider_config.max_new_records_per_day

    def _get_provider(self, provider_config: ProviderConfig) -> BaseProvider:
        name = provider_config.name
        if name not in self._providers:
            self._providers[name] = get_provider(
                provider_config, self.app_config.advanced, self.env_config
            )
        return self._providers[name]

    def _load_vendors(self) -> List[VendorDirectoryEntry]:
        if self._batch_session is not None:
            return VendorRepository(self._batch_session).list_all()
        with get_session() as session:
            return VendorRepository(session).list_all()
