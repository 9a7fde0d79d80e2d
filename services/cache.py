"""
Read-through query cache with coarse, prefix-level invalidation.

Keys are ``<prefix>:<generation>:<params digest>``. Invalidating a prefix
bumps its generation, so every key built under the old generation becomes
unreachable and ages out through the TTL.
"""
import hashlib
import json
import logging
import time
from typing import Any, Callable, Dict, Iterable, Optional

from django.core.cache import caches

logger = logging.getLogger(__name__)

_MISSING = object()


class QueryCache:
    """Wraps a Django cache backend; every failure is logged and treated as a miss"""

    GENERATION_KEY = "gen:{prefix}"

    def __init__(self, backend=None, ttl: int = 600, namespace: str = "storage"):
        self.backend = backend if backend is not None else caches["default"]
        self.ttl = ttl
        self.namespace = namespace
        self._prefixes = set()

    def _generation_key(self, prefix: str) -> str:
        return f"{self.namespace}:" + self.GENERATION_KEY.format(prefix=prefix)

    def _generation(self, prefix: str) -> int:
        key = self._generation_key(prefix)
        generation = self.backend.get(key)
        if generation is None:
            # Seed from the clock so a lost counter never reuses an old generation
            generation = int(time.time() * 1000)
            if not self.backend.add(key, generation, timeout=None):
                generation = self.backend.get(key, generation)
        self._prefixes.add(prefix)
        return generation

    @staticmethod
    def digest(params: Optional[Dict[str, Any]]) -> str:
        if not params:
            return "all"
        serialized = json.dumps(params, sort_keys=True, default=str)
        return hashlib.sha256(serialized.encode("utf-8")).hexdigest()

    def make_key(self, prefix: str, params: Optional[Dict[str, Any]] = None) -> str:
        return f"{self.namespace}:{prefix}:{self._generation(prefix)}:{self.digest(params)}"

    def get(self, prefix: str, params: Optional[Dict[str, Any]] = None, default: Any = None) -> Any:
        try:
            value = self.backend.get(self.make_key(prefix, params), _MISSING)
        except Exception as e:
            logger.warning(f"Cache read failed for {prefix}: {e}")
            return default
        if value is _MISSING:
            return default
        return value

    def set(self, prefix: str, params: Optional[Dict[str, Any]], value: Any) -> None:
        try:
            self.backend.set(self.make_key(prefix, params), value, timeout=self.ttl)
        except Exception as e:
            logger.warning(f"Cache write failed for {prefix}: {e}")

    def get_or_load(self, prefix: str, params: Optional[Dict[str, Any]], loader: Callable[[], Any]) -> Any:
        cached = self.get(prefix, params, default=_MISSING)
        if cached is not _MISSING:
            logger.debug(f"Cache hit: {prefix} {params}")
            return cached
        value = loader()
        self.set(prefix, params, value)
        return value

    def invalidate(self, prefixes: Iterable[str]) -> None:
        """Make every key under each prefix unreachable"""
        for prefix in prefixes:
            key = self._generation_key(prefix)
            try:
                try:
                    self.backend.incr(key)
                except ValueError:
                    self.backend.set(key, int(time.time() * 1000), timeout=None)
            except Exception as e:
                logger.warning(f"Cache invalidation failed for {prefix}: {e}")
            else:
                logger.debug(f"Cache invalidated: {prefix}")

    def clear(self) -> None:
        self.invalidate(list(self._prefixes))
