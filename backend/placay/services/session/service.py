"""Planner session: the presentation-side state of one viewer.

Holds the client-local tour and favorite lists, the favorite staging map,
like reconcilers and image loads. Local lists are only ever replaced as a
whole, and only after the backend confirmed the change. If a gateway call
fails the exception propagates and the previous lists stay in place.
"""

import logging
from collections import OrderedDict
from typing import Callable, Optional

from placay.models import (
    Favorite,
    FavoriteCreate,
    FavoriteNotFound,
    LikeState,
    LocationInput,
    Tour,
    TourCreate,
    TourNotFound,
)
from placay.services.enrichment import ImageEnrichmentService, ImageLoad
from placay.services.gateways import LikeGateway, PersistenceGateway, ViewerIdentity
from placay.services.itinerary import (
    build_location,
    merge_location,
    parse_coordinates,
    remove_location,
)
from placay.services.likes import LikeReconciler
from placay.services.staging import FavoriteTourStaging

logger = logging.getLogger(__name__)


class PlannerSession:
    """Per-viewer planner state and the actions that change it."""

    def __init__(
        self,
        viewer: ViewerIdentity,
        persistence: PersistenceGateway,
        likes: LikeGateway,
        enrichment: ImageEnrichmentService,
    ) -> None:
        self.viewer = viewer
        self._persistence = persistence
        self._likes = likes
        self._enrichment = enrichment
        self.tours: list[Tour] = []
        self.favorites: list[Favorite] = []
        self.staging = FavoriteTourStaging()
        self._reconcilers: dict[str, LikeReconciler] = {}
        self._image_loads: dict[str, ImageLoad] = {}

    # Lookups

    def find_tour(self, tour_id: str) -> Tour:
        for tour in self.tours:
            if tour.id == tour_id:
                return tour
        raise TourNotFound(f"tour {tour_id} is not loaded")

    def find_favorite(self, favorite_id: str) -> Favorite:
        for favorite in self.favorites:
            if favorite.id == favorite_id:
                return favorite
        raise FavoriteNotFound(f"favorite {favorite_id} is not loaded")

    def _replace_tour(self, updated: Tour) -> Tour:
        self.tours = [updated if tour.id == updated.id else tour for tour in self.tours]
        # Images belong to the old location objects.
        stale = self._image_loads.pop(updated.id, None)
        if stale is not None:
            stale.discard()
        return updated

    # Tours

    async def refresh_tours(self) -> list[Tour]:
        self.tours = await self._persistence.list_tours(self.viewer.viewer_id)
        return self.tours

    async def create_tour(self, meta: TourCreate) -> Tour:
        tour = await self._persistence.create_tour(self.viewer.viewer_id, meta)
        self.tours = [*self.tours, tour]
        logger.info(f"[SESSION] Created tour {tour.id} ({tour.title})")
        return tour

    async def delete_tour(self, tour_id: str) -> None:
        await self._persistence.delete_tour(tour_id)
        self.tours = [tour for tour in self.tours if tour.id != tour_id]
        reconciler = self._reconcilers.pop(tour_id, None)
        if reconciler is not None:
            reconciler.unmount()
        load = self._image_loads.pop(tour_id, None)
        if load is not None:
            load.discard()

    async def add_location(self, tour_id: str, payload: LocationInput) -> Tour:
        """Merge an ad-hoc POI into the tour and submit the new day list."""
        tour = self.find_tour(tour_id)
        location = build_location(
            payload.name, payload.latitude, payload.longitude, payload.google_poi_id
        )
        days = merge_location(tour.days, tour.start_date, location)
        updated = await self._persistence.replace_tour_days(tour.id, days)
        return self._replace_tour(updated)

    async def remove_location(self, tour_id: str, day_id: str, location_id: str) -> Tour:
        tour = self.find_tour(tour_id)
        days = remove_location(tour.days, day_id, location_id)
        if days is tour.days:
            return tour
        updated = await self._persistence.replace_tour_days(tour.id, days)
        return self._replace_tour(updated)

    # Favorites

    async def refresh_favorites(self) -> list[Favorite]:
        self.favorites = await self._persistence.list_favorites(self.viewer.viewer_id)
        return self.favorites

    async def add_favorite(self, fields: FavoriteCreate) -> Favorite:
        parse_coordinates(fields.latitude, fields.longitude)
        favorite = await self._persistence.create_favorite(self.viewer.viewer_id, fields)
        self.favorites = [*self.favorites, favorite]
        return favorite

    async def delete_favorite(self, favorite_id: str) -> None:
        await self._persistence.delete_favorite(favorite_id)
        self.favorites = [f for f in self.favorites if f.id != favorite_id]

    def stage_favorite(self, favorite_id: str, tour_id: str) -> None:
        self.find_favorite(favorite_id)
        self.staging.select(favorite_id, tour_id)

    def reset_staging(self) -> None:
        self.staging.reset()

    async def commit_favorite(self, favorite_id: str) -> Tour:
        favorite = self.find_favorite(favorite_id)
        updated = await self.staging.commit(favorite, self.tours, self._persistence)
        return self._replace_tour(updated)

    # Likes

    def reconciler(self, tour_id: str) -> LikeReconciler:
        reconciler = self._reconcilers.get(tour_id)
        if reconciler is None:
            reconciler = LikeReconciler(self._likes, self.viewer.viewer_id, tour_id)
            self._reconcilers[tour_id] = reconciler
        return reconciler

    async def like_state(self, tour_id: str) -> LikeState:
        return await self.reconciler(tour_id).mount()

    async def toggle_like(self, tour_id: str) -> LikeState:
        return await self.reconciler(tour_id).toggle()

    # Images

    async def load_images(self, tour_id: str) -> ImageLoad:
        """Enrich every location of the tour and wait for all lookups to settle."""
        tour = self.find_tour(tour_id)
        previous = self._image_loads.get(tour_id)
        if previous is not None:
            previous.discard()
        load = self._enrichment.start(tour)
        self._image_loads[tour_id] = load
        await load.wait()
        return load

    async def close(self) -> None:
        for reconciler in self._reconcilers.values():
            reconciler.unmount()
        for load in self._image_loads.values():
            load.discard()
        self._reconcilers.clear()
        self._image_loads.clear()
        await self._persistence.close()
        await self._likes.close()


SessionFactory = Callable[[ViewerIdentity], PlannerSession]
SessionKey = tuple[str, Optional[str]]


class SessionRegistry:
    """Planner sessions keyed by viewer id and bearer token, LRU-bounded.

    A session's gateways carry the token they were built with, so a request
    only ever reaches a session created for the same token. The least
    recently used session is closed once ``max_sessions`` is exceeded.
    """

    def __init__(self, factory: SessionFactory, max_sessions: int = 256) -> None:
        self._factory = factory
        self._max_sessions = max(1, max_sessions)
        self._sessions: OrderedDict[SessionKey, PlannerSession] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    @staticmethod
    def _key(viewer: ViewerIdentity) -> SessionKey:
        return (viewer.viewer_id, viewer.token)

    async def get(self, viewer: ViewerIdentity) -> PlannerSession:
        key = self._key(viewer)
        session = self._sessions.get(key)
        if session is not None:
            self._sessions.move_to_end(key)
            return session

        session = self._factory(viewer)
        self._sessions[key] = session
        while len(self._sessions) > self._max_sessions:
            (viewer_id, _token), evicted = self._sessions.popitem(last=False)
            logger.info(f"[SESSION] Evicting idle session for viewer {viewer_id}")
            await evicted.close()
        return session

    def peek(self, viewer: ViewerIdentity) -> Optional[PlannerSession]:
        return self._sessions.get(self._key(viewer))

    async def reset(self, viewer: ViewerIdentity) -> bool:
        """Close and forget the session of ``viewer``. Returns False if none."""
        session = self._sessions.pop(self._key(viewer), None)
        if session is None:
            return False
        await session.close()
        return True

    async def close_all(self) -> None:
        while self._sessions:
            _key, session = self._sessions.popitem(last=False)
            await session.close()
