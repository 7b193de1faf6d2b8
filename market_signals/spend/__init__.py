"""Per-provider spend budgeting."""

from .guard import DEFAULT_ALERT_THRESHOLD, SpendGuard
from .models import SpendAlert, SpendCheckResult, WeeklySpendCheckResult

__all__ = [
    "SpendGuard",
    "SpendAlert",
    "SpendCheckResult",
    "WeeklySpendCheckResult",
    "DEFAULT_ALERT_THRESHOLD",
]
