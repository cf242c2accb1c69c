# ===== IMPORTS & DEPENDENCIES =====
import hashlib
import json
import logging
import os
import time
from typing import Any, Callable, Dict, Optional, Tuple

from gamepulse.config import DEFAULT_CACHE_TTL

# ===== CONFIGURATION & CONSTANTS =====
logger = logging.getLogger(__name__)

# ===== CORE BUSINESS LOGIC =====
class TTLCache:
    """
    A key/value cache whose entries expire `ttl` seconds after they were stored.

    The clock is injected so expiry can be tested without sleeping. With a
    `cache_dir`, entries are persisted as JSON files named after the SHA-256 of
    their key; without one they live in this instance only.
    """

    def __init__(self, ttl: float = DEFAULT_CACHE_TTL, clock: Callable[[], float] = time.time, cache_dir: Optional[str] = None):
        self._ttl = ttl
        self._clock = clock
        self._cache_dir = cache_dir
        self._entries: Dict[str, Tuple[float, Any]] = {}
        if self._cache_dir:
            os.makedirs(self._cache_dir, exist_ok=True)
        logger.debug(f"[{self.__class__.__name__}] Initialized with cache dir: {self._cache_dir} and TTL: {self._ttl}s")

    def _get_cache_path(self, key: str) -> str:
        """Generates a cache file path from a given key."""
        hashed_key = hashlib.sha256(key.encode('utf-8')).hexdigest()
        return os.path.join(self._cache_dir, f"{hashed_key}.json")

    def _is_fresh(self, stored_at: float) -> bool:
        return (self._clock() - stored_at) <= self._ttl

    def _read_entry(self, key: str) -> Optional[Tuple[float, Any]]:
        if not self._cache_dir:
            return self._entries.get(key)

        cache_path = self._get_cache_path(key)
        if not os.path.exists(cache_path):
            return None
        try:
            with open(cache_path, 'r', encoding='utf-8') as f:
                payload = json.load(f)
            return float(payload["stored_at"]), payload["value"]
        except (OSError, ValueError, KeyError, TypeError):
            logger.warning(f"⚠️ [{self.__class__.__name__}] Unreadable cache file {cache_path}. Deleting it.")
            self._remove_file(cache_path)
            return None

    def _remove_file(self, cache_path: str) -> None:
        try:
            os.remove(cache_path)
        except OSError:
            logger.debug(f"[{self.__class__.__name__}] Could not remove cache file {cache_path}")

    def get(self, key: str) -> Optional[Any]:
        """Returns the cached value, or None when it is missing or expired."""
        entry = self._read_entry(key)
        if entry is None:
            return None

        stored_at, value = entry
        if not self._is_fresh(stored_at):
            logger.debug(f"[{self.__class__.__name__}] Cache entry expired for key: {key[:80]}")
            self.delete(key)
            return None

        logger.debug(f"[{self.__class__.__name__}] Cache hit for key: {key[:80]}")
        return value

    def set(self, key: str, value: Any) -> None:
        stored_at = self._clock()
        if not self._cache_dir:
            self._entries[key] = (stored_at, value)
            return

        cache_path = self._get_cache_path(key)
        try:
            with open(cache_path, 'w', encoding='utf-8') as f:
                json.dump({"stored_at": stored_at, "value": value}, f, ensure_ascii=False)
            logger.debug(f"💾 [{self.__class__.__name__}] Content saved to cache: {cache_path}")
        except (OSError, TypeError) as e:
            logger.warning(f"⚠️ [{self.__class__.__name__}] Failed to write cache file {cache_path}: {e}")

    def delete(self, key: str) -> None:
        if not self._cache_dir:
            self._entries.pop(key, None)
            return
        cache_path = self._get_cache_path(key)
        if os.path.exists(cache_path):
            self._remove_file(cache_path)

    def clear(self) -> None:
        self._entries.clear()
        if not self._cache_dir:
            return
        for name in os.listdir(self._cache_dir):
            if name.endswith(".json"):
                self._remove_file(os.path.join(self._cache_dir, name))
