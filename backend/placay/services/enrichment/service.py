"""POI image enrichment.

Backfills each location's display image from the places lookup:
1. Look up place details by the location's external place id
2. Take the first image descriptor's photo reference, if any
3. Turn it into a displayable URL through the photo proxy

Architecture:
- One request per location, fanned out with asyncio.gather (no ordering)
- Semaphore caps simultaneous lookups
- Per-location failure isolation: a failed lookup is logged and the location
  simply keeps no image; it never cancels or fails the other lookups
- Photo references are cached by place id (Redis or in-process LRU)
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import quote_plus

from placay.models import Location, Tour
from placay.services.cache import CacheService
from placay.services.gateways import PlaceLookupGateway
from placay.services.itinerary import flatten_locations

logger = logging.getLogger(__name__)


class ImageLoad:
    """Progress of one enrichment run.

    ``loading`` stays True until every lookup has settled, successfully or
    not. After :meth:`discard`, late results are dropped instead of being
    written to the locations.
    """

    def __init__(self, locations: list[Location]) -> None:
        self.locations = locations
        self.failed: list[Location] = []
        self._done = asyncio.Event()
        self._discarded = False
        self._task: Optional[asyncio.Task] = None

    @property
    def loading(self) -> bool:
        return not self._done.is_set()

    @property
    def discarded(self) -> bool:
        return self._discarded

    async def wait(self) -> None:
        await self._done.wait()

    def discard(self) -> None:
        self._discarded = True

    def apply(self, location: Location, image_url: Optional[str]) -> None:
        if self._discarded or not image_url:
            return
        location.image = image_url

    def finish(self) -> None:
        self._done.set()

    def images(self) -> list[dict]:
        return [
            {
                "_id": location.id,
                "name": location.name,
                "googlePOIId": location.google_poi_id,
                "image": location.image,
            }
            for location in self.locations
        ]


class ImageEnrichmentService:
    """Resolves place ids to photo URLs and writes them onto locations."""

    def __init__(
        self,
        places: PlaceLookupGateway,
        photo_base_url: str,
        cache: Optional[CacheService] = None,
        concurrency: int = 5,
        cache_ttl: int = 86400,
    ) -> None:
        self._places = places
        self._photo_base_url = photo_base_url
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._semaphore = asyncio.Semaphore(concurrency)

    def build_photo_url(self, photo_reference: str) -> str:
        return f"{self._photo_base_url}?photoReference={quote_plus(photo_reference)}"

    async def _cached_reference(self, key: str) -> Optional[dict]:
        if self._cache is None:
            return None
        try:
            cached = await self._cache.get(key)
            if cached is None or isinstance(cached, dict):
                return cached
            # Unreadable entry, drop it so the next lookup refreshes it.
            logger.info(f"[ENRICH] Dropping malformed cache entry {key}")
            await self._cache.delete(key)
        except Exception as e:
            logger.info(f"[ENRICH] Cache read skipped: {type(e).__name__}: {e}")
        return None

    async def _store_reference(self, key: str, photo_reference: Optional[str]) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set(
                key, {"photo_reference": photo_reference}, ttl_seconds=self._cache_ttl
            )
        except Exception as e:
            logger.info(f"[ENRICH] Cache write skipped: {type(e).__name__}: {e}")

    async def _lookup_image(self, place_id: str) -> Optional[str]:
        """Resolve a place id to a photo URL. Lookup errors propagate."""
        if not place_id:
            return None

        key = CacheService.build_place_key(place_id)
        cached = await self._cached_reference(key)
        if cached is not None:
            reference = cached.get("photo_reference")
        else:
            async with self._semaphore:
                details = await self._places.get_place_details(place_id)
            reference = details.images[0].photo_reference if details.images else None
            await self._store_reference(key, reference)

        return self.build_photo_url(reference) if reference else None

    async def resolve_image(self, place_id: str) -> Optional[str]:
        """Photo URL for a place, or None when it has no photo or lookup fails."""
        try:
            return await self._lookup_image(place_id)
        except Exception as e:
            logger.warning(f"[ENRICH] Lookup failed for {place_id}: {type(e).__name__}: {e}")
            return None

    async def _run(self, load: ImageLoad) -> None:
        async def enrich_one(location: Location) -> None:
            try:
                image_url = await self._lookup_image(location.google_poi_id)
            except Exception as e:
                logger.warning(
                    f"[ENRICH] {location.name} ({location.google_poi_id}): "
                    f"{type(e).__name__}: {e}"
                )
                load.failed.append(location)
                return
            load.apply(location, image_url)

        try:
            await asyncio.gather(
                *[enrich_one(location) for location in load.locations],
                return_exceptions=True,
            )
        finally:
            load.finish()
        found = sum(1 for location in load.locations if location.image)
        logger.info(
            f"[ENRICH] {found}/{len(load.locations)} images, {len(load.failed)} failed"
        )

    async def enrich_locations(self, locations: list[Location]) -> ImageLoad:
        """Enrich the given locations and return once every lookup settled."""
        load = ImageLoad(locations)
        await self._run(load)
        return load

    async def enrich_tour(self, tour: Tour) -> ImageLoad:
        return await self.enrich_locations(flatten_locations(tour.days))

    def start(self, tour: Tour) -> ImageLoad:
        """Begin enriching in the background; await ``load.wait()`` for completion."""
        load = ImageLoad(flatten_locations(tour.days))
        load._task = asyncio.create_task(self._run(load))
        return load
