"""
infrastructure package

Shared infrastructure components for LPP.

Modules:
    - interfaces: Base interface for reasoning front-ends (import explicitly,
      it depends on the proof explanation component)
    - cache_manager: Named TTL caches (solution memoisation)
"""

from infrastructure.cache_manager import (
    CacheManager,
    get_cache_manager,
    reset_cache_manager,
)

__all__ = [
    "CacheManager",
    "get_cache_manager",
    "reset_cache_manager",
]
