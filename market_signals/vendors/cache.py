"""TTL cache over the vendor directory.

The directory is always reloaded wholesale once the TTL lapses; entries are
never patched in place. The cache is an explicit object owned by whoever
runs a sync, so tests can build isolated instances.
"""

import threading
import time
from typing import Callable, List, Optional

from market_signals.domain.models import VendorDirectoryEntry
from market_signals.logging import get_logger

logger = get_logger(__name__, component="vendors")

DEFAULT_TTL_SECONDS = 300


class VendorDirectoryCache:
    """Thread-safe, TTL-expiring snapshot of the vendor directory.

    Concurrent callers that miss at the same time collapse into one reload:
    the first takes the lock and reloads, the rest find a fresh snapshot on
    the second check.
    """

    def __init__(
        self,
        loader: Callable[[], List[VendorDirectoryEntry]],
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the cache.

        Args:
            loader: Callable returning the full directory in stable order
            ttl_seconds: Snapshot lifetime
            clock: Monotonic clock (injectable for tests)
        """
        self._loader = loader
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: List[VendorDirectoryEntry] = []
        self._loaded_at: Optional[float] = None
        self.reload_count = 0

    def entries(self) -> List[VendorDirectoryEntry]:
        """Return the current snapshot, reloading it if expired or invalidated."""
        if self._is_fresh():
            return self._entries

        with self._lock:
            if not self._is_fresh():
                self._reload()
            return self._entries

    def invalidate(self) -> None:
        """Force the next entries() call to reload."""
        with self._lock:
            self._loaded_at = None

    def _is_fresh(self) -> bool:
        loaded_at = self._loaded_at
        return loaded_at is not None and (self._clock() - loaded_at) < self._ttl_seconds

    def _reload(self) -> None:
        entries = list(self._loader())
        self._entries = entries
        self._loaded_at = self._clock()
        self.reload_count += 1
        logger.debug(
            f"Vendor directory loaded ({len(entries)} vendors)",
            extra={"event": "vendors.cache.reloaded", "vendor_count": len(entries)},
        )
