from .service import (
    CacheService,
    MemoryCacheService,
    RedisCacheService,
    create_cache_service,
)

__all__ = [
    "CacheService",
    "MemoryCacheService",
    "RedisCacheService",
    "create_cache_service",
]
