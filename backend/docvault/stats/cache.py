"""Small in-process TTL cache for expensive read models.

Entries expire ``ttl_seconds`` after they were set. The clock is injectable
so expiry can be tested without sleeping.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class TTLCache:
    """Thread-safe mapping whose entries expire after a fixed time-to-live.

    Example:
        >>> now = [0.0]
        >>> cache = TTLCache(ttl_seconds=300, clock=lambda: now[0])
        >>> cache.set("dashboard", {"users": 3})
        >>> cache.get("dashboard")
        {'users': 3}
        >>> now[0] = 300.0
        >>> cache.get("dashboard") is None
        True
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache MISS for key: {key}")
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug(f"Cache EXPIRED for key: {key}")
                return None
            logger.debug(f"Cache HIT for key: {key}")
            return value

    def set(self, key: Hashable, value: Any, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[key] = (self._clock() + ttl, value)

    def get_or_set(self, key: Hashable, factory: Callable[[], Any]) -> Any:
        """Cached value, computing and storing it with ``factory`` on a miss."""
        value = self.get(key)
        if value is None:
            value = factory()
            self.set(key, value)
        return value

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
