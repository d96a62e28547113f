"""
infrastructure/cache_manager.py

Central cache registry for LPP.

The derivation is deterministic, so its result can be computed once and
shared: the hint session and the reasoning facade both read the memoised
SolutionResult from a named cache instead of re-running the engine.

Features:
- One process-wide CacheManager (lazy, thread-safe)
- Named caches, each a cachetools.TTLCache with its own policy
- Hit/miss statistics per cache
- Invalidation per key or per cache

Usage:
    from infrastructure.cache_manager import get_cache_manager

    cache_mgr = get_cache_manager()
    cache_mgr.register_cache("lpp_solution", maxsize=4, ttl=3600)

    cache_mgr.set("lpp_solution", "solution", result)
    result = cache_mgr.get("lpp_solution", "solution")
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from cachetools import TTLCache

from component_15_logging_config import get_logger
from lpp_exceptions import InvalidConfigError

logger = get_logger(__name__)


@dataclass
class CacheStatistics:
    """Zugriffsstatistik eines Caches."""

    cache_name: str
    hits: int = 0
    misses: int = 0
    sets: int = 0
    invalidations: int = 0
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.hits / self.total_requests


@dataclass
class CachePolicy:
    """Größe und Lebensdauer (Sekunden) eines Caches."""

    maxsize: int
    ttl: int

    def validate(self) -> None:
        if self.maxsize <= 0:
            raise InvalidConfigError(
                f"maxsize must be positive, got {self.maxsize}",
                context={"maxsize": self.maxsize},
            )
        if self.ttl <= 0:
            raise InvalidConfigError(
                f"ttl must be positive, got {self.ttl}", context={"ttl": self.ttl}
            )


class CacheManager:
    """
    Verwaltet benannte TTL-Caches mit Statistik.

    Alle öffentlichen Methoden sind durch ein RLock geschützt.

    Attributes:
        caches: cache_name -> TTLCache
        policies: cache_name -> CachePolicy
        statistics: cache_name -> CacheStatistics
    """

    def __init__(self) -> None:
        self.caches: Dict[str, TTLCache] = {}
        self.policies: Dict[str, CachePolicy] = {}
        self.statistics: Dict[str, CacheStatistics] = {}
        self._cache_lock = threading.RLock()

        logger.debug("CacheManager initialisiert")

    def register_cache(
        self, name: str, maxsize: int, ttl: int, overwrite: bool = False
    ) -> None:
        """
        Register a named cache.

        Raises:
            InvalidConfigError: If maxsize or ttl is not positive, or the name
                is taken and overwrite is False
        """
        policy = CachePolicy(maxsize=maxsize, ttl=ttl)
        policy.validate()

        with self._cache_lock:
            existed = name in self.caches
            if existed and not overwrite:
                raise InvalidConfigError(
                    f"Cache '{name}' already registered",
                    context={"cache": name},
                )

            self.caches[name] = TTLCache(maxsize=maxsize, ttl=ttl)
            self.policies[name] = policy
            self.statistics[name] = CacheStatistics(cache_name=name)

            logger.info(
                "Cache registriert",
                extra={
                    "cache": name,
                    "maxsize": maxsize,
                    "ttl": ttl,
                    "replaced": existed,
                },
            )

    def _require(self, cache_name: str) -> TTLCache:
        if cache_name not in self.caches:
            raise ValueError(f"Cache '{cache_name}' not registered")
        return self.caches[cache_name]

    def get(self, cache_name: str, key: str) -> Optional[Any]:
        """
        Cached value, or None on a miss or after expiry.

        Raises:
            ValueError: If the cache is not registered
        """
        with self._cache_lock:
            cache = self._require(cache_name)
            stats = self.statistics[cache_name]

            if key in cache:
                stats.hits += 1
                logger.debug("Cache HIT", extra={"cache": cache_name, "key": key})
                return cache[key]

            stats.misses += 1
            logger.debug("Cache MISS", extra={"cache": cache_name, "key": key})
            return None

    def set(self, cache_name: str, key: str, value: Any) -> None:
        with self._cache_lock:
            cache = self._require(cache_name)
            cache[key] = value
            self.statistics[cache_name].sets += 1

    def invalidate(self, cache_name: str, key: Optional[str] = None) -> int:
        """
        Drop one key, or the whole cache when key is None.

        Returns:
            Number of entries removed
        """
        with self._cache_lock:
            cache = self._require(cache_name)
            stats = self.statistics[cache_name]

            if key is not None:
                if key not in cache:
                    return 0
                del cache[key]
                stats.invalidations += 1
                return 1

            count = len(cache)
            cache.clear()
            stats.invalidations += count
            logger.info("Cache geleert", extra={"cache": cache_name, "entries": count})
            return count

    def get_stats(self, cache_name: str) -> Dict[str, Any]:
        with self._cache_lock:
            cache = self._require(cache_name)
            policy = self.policies[cache_name]
            stats = self.statistics[cache_name]

            return {
                "cache_name": cache_name,
                "hits": stats.hits,
                "misses": stats.misses,
                "sets": stats.sets,
                "invalidations": stats.invalidations,
                "total_requests": stats.total_requests,
                "hit_rate": stats.hit_rate,
                "size": len(cache),
                "maxsize": policy.maxsize,
                "ttl": policy.ttl,
                "created_at": stats.created_at.isoformat(),
            }

    def list_caches(self) -> List[str]:
        with self._cache_lock:
            return sorted(self.caches.keys())

    def unregister_cache(self, cache_name: str) -> None:
        with self._cache_lock:
            self._require(cache_name)
            del self.caches[cache_name]
            del self.policies[cache_name]
            del self.statistics[cache_name]


_cache_manager_instance: Optional[CacheManager] = None
_instance_lock = threading.RLock()


def get_cache_manager() -> CacheManager:
    """Process-wide CacheManager (created on first use)."""
    global _cache_manager_instance

    if _cache_manager_instance is None:
        with _instance_lock:
            if _cache_manager_instance is None:
                _cache_manager_instance = CacheManager()

    return _cache_manager_instance


def reset_cache_manager() -> None:
    """
    Discard the process-wide CacheManager and everything it holds.

    Only meant for test isolation.
    """
    global _cache_manager_instance

    with _instance_lock:
        _cache_manager_instance = None
    logger.debug("CacheManager zurückgesetzt")
