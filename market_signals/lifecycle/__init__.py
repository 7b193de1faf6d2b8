"""Signal lifecycle sweeps and apply-URL liveness."""

from .health_check import HealthCheckResult, UrlHealthChecker
from .manager import (
    DEFAULT_STALE_AFTER_DAYS,
    LifecycleManager,
    SweepResult,
    status_after_sighting,
)
from .probe import UrlProbe, is_closed_redirect, looks_closed

__all__ = [
    "LifecycleManager",
    "SweepResult",
    "status_after_sighting",
    "DEFAULT_STALE_AFTER_DAYS",
    "UrlProbe",
    "is_closed_redirect",
    "looks_closed",
    "UrlHealthChecker",
    "HealthCheckResult",
]
