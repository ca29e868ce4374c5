"""
User service caching package.

Process-lifetime, in-memory cache with absolute expiry. Nothing is
persisted and there is no invalidation beyond expiry.
"""

from .memory_cache import CacheEntry, MemoryCache

__all__ = ["CacheEntry", "MemoryCache"]
