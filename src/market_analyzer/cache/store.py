"""In-memory TTL store for computed market analyses.

The store is owned by whoever serves results (the API server, the CLI); the
analysis engine never reads or writes it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    data: Any
    stored_at: float
    expires_at: float

    def age_s(self, now: float) -> float:
        return max(0.0, now - self.stored_at)

    @property
    def cached_at(self) -> str:
        return datetime.fromtimestamp(self.stored_at, tz=timezone.utc).isoformat()


class ResultStore:
    def __init__(
        self,
        default_ttl_s: float = 30 * 60,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.default_ttl_s = float(default_ttl_s)
        self._clock = clock or time.time
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Optional[CacheEntry]:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug("Cache miss for %s", key)
                return None
            if now > entry.expires_at:
                del self._entries[key]
                logger.info("Cache expired for %s", key)
                return None
        logger.debug("Cache hit for %s (age %.0fs)", key, entry.age_s(now))
        return entry

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> CacheEntry:
        now = self._clock()
        ttl_s = self.default_ttl_s if ttl is None else float(ttl)
        entry = CacheEntry(key=key, data=value, stored_at=now, expires_at=now + ttl_s)
        with self._lock:
            self._entries[key] = entry
        logger.info("Cache set for %s, expires in %.1f minutes", key, ttl_s / 60.0)
        return entry

    def clear(self, key: str) -> bool:
        with self._lock:
            removed = self._entries.pop(key, None) is not None
        if removed:
            logger.info("Cache cleared for %s", key)
        return removed

    def clear_all(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("All cache cleared (%d entries)", count)
        return count

    def stats(self) -> Dict[str, Any]:
        now = self._clock()
        with self._lock:
            entries = list(self._entries.values())
        return {
            "total_entries": len(entries),
            "default_ttl_minutes": self.default_ttl_s / 60.0,
            "entries": [
                {
                    "key": entry.key,
                    "age_s": round(entry.age_s(now), 1),
                    "expires_in_s": round(entry.expires_at - now, 1),
                }
                for entry in entries
            ],
        }
