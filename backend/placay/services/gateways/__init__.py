"""Gateways to the persistence, like and place lookup backends."""

from .base import (
    LikeGateway,
    PersistenceGateway,
    PlaceLookupGateway,
    ViewerIdentity,
)
from .http import (
    HttpLikeGateway,
    HttpPersistenceGateway,
    HttpPlaceLookupGateway,
    PlacayApiClient,
)

__all__ = [
    "LikeGateway",
    "PersistenceGateway",
    "PlaceLookupGateway",
    "ViewerIdentity",
    "HttpLikeGateway",
    "HttpPersistenceGateway",
    "HttpPlaceLookupGateway",
    "PlacayApiClient",
]
