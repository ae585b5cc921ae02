"""
Authority Status Cache.

In-memory TTL cache of SAT answers keyed by the normalized query, shared
by every validation in the process.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from config import get_config
from cfdi_validation.utils.logger import get_logger
from .status import AuthorityStatus

# Initialize module logger
logger = get_logger(__name__)


@dataclass
class CacheEntry:
    status: AuthorityStatus
    created_at: float


class AuthorityCache:
    """
    Thread-safe TTL map from query key to AuthorityStatus.

    Entries expire a fixed time after creation and are dropped lazily on
    lookup. Stored statuses are copied on the way in and out.

    Example:
        >>> cache = AuthorityCache(ttl_seconds=300)
        >>> key = AuthorityCache.make_key("AAA010101AAA", "XAXX010101000", "500.00", uuid)
        >>> cache.set(key, status)
        >>> cache.get(key).from_cache
        True
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = float(
            ttl_seconds if ttl_seconds is not None
            else get_config('sat.cache_ttl_seconds', 300)
        )
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(rfc_emisor: str, rfc_receptor: str, total: str, uuid: str) -> str:
        return f"{rfc_emisor}|{rfc_receptor}|{total}|{uuid}"

    def get(self, key: str) -> Optional[AuthorityStatus]:
        """Return a copy of the cached status marked from_cache, or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.created_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return entry.status.copy(from_cache=True)

    def set(self, key: str, status: AuthorityStatus) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(
                status=status.copy(from_cache=False),
                created_at=self._clock(),
            )

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"SAT cache cleared ({count} entries)")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
