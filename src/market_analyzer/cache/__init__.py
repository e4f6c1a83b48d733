"""Result cache exports."""

from market_analyzer.cache.store import CacheEntry, ResultStore

__all__ = ["CacheEntry", "ResultStore"]
