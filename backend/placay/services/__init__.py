"""Placay Services.

Service layer components:
- Itinerary: pure merge/remove rules for a tour's day list
- Staging: favorite -> tour selection awaiting commit
- Likes: two-signal like state with flip-then-reconcile toggling
- Enrichment: concurrent per-location photo lookup
- Cache: Redis-based caching with in-memory LRU fallback
- Gateways: httpx clients for the Placay REST backend
- Session: per-viewer planner state tying the above together
"""

from .cache import CacheService, MemoryCacheService, RedisCacheService, create_cache_service
from .enrichment import ImageEnrichmentService, ImageLoad
from .gateways import (
    HttpLikeGateway,
    HttpPersistenceGateway,
    HttpPlaceLookupGateway,
    LikeGateway,
    PersistenceGateway,
    PlaceLookupGateway,
    ViewerIdentity,
)
from .itinerary import (
    build_location,
    flatten_locations,
    merge_location,
    parse_coordinates,
    remove_location,
)
from .likes import LikeReconciler
from .session import PlannerSession, SessionRegistry
from .staging import FavoriteTourStaging

__all__ = [
    # Cache
    "CacheService",
    "MemoryCacheService",
    "RedisCacheService",
    "create_cache_service",
    # Enrichment
    "ImageEnrichmentService",
    "ImageLoad",
    # Gateways
    "HttpLikeGateway",
    "HttpPersistenceGateway",
    "HttpPlaceLookupGateway",
    "LikeGateway",
    "PersistenceGateway",
    "PlaceLookupGateway",
    "ViewerIdentity",
    # Itinerary
    "build_location",
    "flatten_locations",
    "merge_location",
    "parse_coordinates",
    "remove_location",
    # Likes
    "LikeReconciler",
    # Session
    "PlannerSession",
    "SessionRegistry",
    # Staging
    "FavoriteTourStaging",
]
