"""Periodic apply-URL verification for ACTIVE signals."""

import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from market_signals.domain.models import UrlStatus
from market_signals.logging import get_logger
from market_signals.persistence.database import get_session
from market_signals.persistence.exceptions import PersistenceError
from market_signals.persistence.repositories import MarketSignalRepository
from market_signals.utils.timestamps import utc_now

from .manager import LifecycleManager
from .probe import UrlProbe

logger = get_logger(__name__, component="url_health")

DEFAULT_BATCH_SIZE = 50
DEFAULT_RECHECK_AFTER_HOURS = 12
DEFAULT_DELAY_SECONDS = 0.2


@dataclass
class HealthCheckResult:
    checked: int = 0
    alive: int = 0
    dead: int = 0
    redirect: int = 0
    errors: int = 0


class UrlHealthChecker:
    """Probes a batch of apply URLs and records the results.

    Candidates are ACTIVE signals with an apply URL that were never verified
    or were verified more than ``recheck_after_hours`` ago, oldest first. Each
    result is written in its own transaction so a long batch never holds a
    write lock while waiting on the network.
    """

    def __init__(
        self,
        probe: UrlProbe,
        batch_size: int = DEFAULT_BATCH_SIZE,
        recheck_after_hours: int = DEFAULT_RECHECK_AFTER_HOURS,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.probe = probe
        self.batch_size = batch_size
        self.recheck_after_hours = recheck_after_hours
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def run(self, now: Optional[datetime] = None) -> HealthCheckResult:
        now = now or utc_now()
        result = HealthCheckResult()

        with get_session() as session:
            candidates = MarketSignalRepository(session).list_url_check_candidates(
                verified_before=now - timedelta(hours=self.recheck_after_hours),
                limit=self.batch_size,
            )

        if not candidates:
            logger.info("No URLs to check", extra={"event": "url_health.idle"})
            return result

        logger.info(
            f"Checking {len(candidates)} apply URLs",
            extra={"event": "url_health.started", "count": len(candidates)},
        )

        for signal in candidates:
            status = self.probe.check(signal.apply_url)
            try:
                with get_session() as session:
                    manager = LifecycleManager(MarketSignalRepository(session))
                    manager.apply_probe_result(signal.signal_key, status, now)
            except PersistenceError as e:
                result.errors += 1
                logger.error(
                    f"Failed to record URL status for {signal.signal_key}: {e}",
                    extra={"event": "url_health.record_failed", "signal_key": signal.signal_key},
                )
                continue

            result.checked += 1
            if status == UrlStatus.ALIVE:
                result.alive += 1
            elif status == UrlStatus.DEAD:
                result.dead += 1
            elif status == UrlStatus.REDIRECT:
                result.redirect += 1

            if self.delay_seconds:
                self._sleep(self.delay_seconds)

        logger.info(
            f"URL health check complete: alive={result.alive}, dead={result.dead}, "
            f"redirect={result.redirect}, errors={result.errors}",
            extra={
                "event": "url_health.completed",
                "checked": result.checked,
                "alive": result.alive,
                "dead": result.dead,
                "redirect": result.redirect,
                "errors": result.errors,
            },
        )
        return result
