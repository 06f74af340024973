"""Cache layer for the address service.

Provides Redis caching with the read-through pattern:
- Single addresses cached by id, listings cached as derived views
- Derived views discarded wholesale on every mutation
- TTL-based expiration for memory management
- Full cache reset on startup, shutdown and on demand
"""

from address_service.cache.errors import CacheStoreStopped, CacheUnavailable
from address_service.cache.facade import AddressCacheFacade
from address_service.cache.keys import CacheKeys
from address_service.cache.lifecycle import CacheLifecycleManager, LifecyclePhase
from address_service.cache.redis import (
    RedisCacheManager,
    RedisCacheStore,
    RedisNamespace,
    close_redis,
    get_redis,
)

__all__ = [
    # Core cache
    "CacheKeys",
    "RedisCacheManager",
    "RedisCacheStore",
    "RedisNamespace",
    "get_redis",
    "close_redis",
    # Errors
    "CacheUnavailable",
    "CacheStoreStopped",
    # Consistency
    "AddressCacheFacade",
    "CacheLifecycleManager",
    "LifecyclePhase",
]
