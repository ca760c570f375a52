"""
Key-value cache stores with TTL expiry.

Collaborators (loader, fetcher) receive a store instance instead of touching
a process-wide cache directory. The leg and parlay engines never use it.

Usage:
    store = JsonFileCacheStore(settings.CACHE_DIR)
    store.set("gamelogs_2024_5", payload, ttl_seconds=settings.CACHE_TTL_SECONDS)
    payload = store.get("gamelogs_2024_5")  # None once expired
"""

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """Abstract key-value store with per-entry expiry."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value that expires ``ttl_seconds`` from now."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a single entry if present."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""


class MemoryCacheStore(CacheStore):
    """In-process store, mainly for tests and one-shot CLI runs."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() > expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._entries[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()


class JsonFileCacheStore(CacheStore):
    """One JSON file per key: {"data": ..., "expires_at": epoch_seconds}."""

    def __init__(self, cache_dir: Path, clock: Callable[[], float] = time.time):
        self.cache_dir = Path(cache_dir)
        self._clock = clock

    def _path_for(self, key: str) -> Path:
        sanitized = re.sub(r"[^a-zA-Z0-9\-_]", "_", key)
        return self.cache_dir / f"{sanitized}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._path_for(key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                entry = json.load(f)
            expires_at = float(entry["expires_at"])
            data = entry["data"]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Cache entry for '{key}' is invalid: {e}")
            return None
        except OSError as e:
            logger.warning(f"Failed to read cache entry for '{key}': {e}")
            return None

        if self._clock() > expires_at:
            logger.debug(f"Cache entry for '{key}' expired")
            self.delete(key)
            return None
        return data

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        entry = {"data": value, "expires_at": self._clock() + ttl_seconds}
        with open(self._path_for(key), "w", encoding="utf-8") as f:
            json.dump(entry, f, indent=2)

    def delete(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    def clear(self) -> None:
        if not self.cache_dir.exists():
            return
        removed = 0
        for path in self.cache_dir.glob("*.json"):
            path.unlink()
            removed += 1
        logger.info(f"Cleared {removed} cache entries from {self.cache_dir}")
