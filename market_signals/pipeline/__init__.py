"""Market sync orchestration."""

from .models import ProviderRunStats, SyncRunResult
from .runner import MarketSyncPipeline

__all__ = [
    "MarketSyncPipeline",
    "SyncRunResult",
    "ProviderRunStats",
]
