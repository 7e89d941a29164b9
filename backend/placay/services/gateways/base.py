"""Gateway interfaces consumed by the planner core.

The core never talks to storage, the like counter or the places API
directly; it goes through these narrow async interfaces. All writes are
whole-resource replacements.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from placay.models import Day, Favorite, FavoriteCreate, PlaceDetails, Tour, TourCreate


@dataclass(frozen=True)
class ViewerIdentity:
    """Current viewer as supplied by the session provider. Opaque to the core."""

    viewer_id: str
    token: Optional[str] = None


class PersistenceGateway(ABC):
    """Tour and favorite storage."""

    async def close(self) -> None:
        """Release connections held by the gateway."""

    @abstractmethod
    async def get_tour(self, tour_id: str) -> Tour:
        pass

    @abstractmethod
    async def list_tours(self, owner_id: str) -> list[Tour]:
        pass

    @abstractmethod
    async def replace_tour_days(self, tour_id: str, days: list[Day]) -> Tour:
        """Replace the tour's entire day list and return the stored tour."""
        pass

    @abstractmethod
    async def create_tour(self, owner_id: str, meta: TourCreate) -> Tour:
        pass

    @abstractmethod
    async def delete_tour(self, tour_id: str) -> None:
        pass

    @abstractmethod
    async def list_favorites(self, owner_id: str) -> list[Favorite]:
        pass

    @abstractmethod
    async def create_favorite(self, owner_id: str, fields: FavoriteCreate) -> Favorite:
        pass

    @abstractmethod
    async def delete_favorite(self, favorite_id: str) -> None:
        pass


class LikeGateway(ABC):
    """Per-viewer like flag and per-tour like count."""

    async def close(self) -> None:
        pass

    @abstractmethod
    async def get_liked_by_viewer(self, viewer_id: str, tour_id: str) -> bool:
        pass

    @abstractmethod
    async def get_total_likes(self, tour_id: str) -> int:
        pass

    @abstractmethod
    async def add_like(self, viewer_id: str, tour_id: str) -> None:
        pass


class PlaceLookupGateway(ABC):
    """External place details lookup, keyed by place identifier."""

    async def close(self) -> None:
        pass

    @abstractmethod
    async def get_place_details(self, place_id: str) -> PlaceDetails:
        pass
