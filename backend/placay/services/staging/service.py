"""Favorite -> tour staging.

Remembers, per favorite, which tour the user picked to add it to. The map is
owned by one planner session: it is never persisted, never derived from
server state, and only cleared by an explicit reset.
"""

import logging
from collections.abc import Iterable, Iterator
from typing import Optional

from placay.models import Favorite, Location, NoTourSelected, Tour, TourNotFound
from placay.services.gateways import PersistenceGateway
from placay.services.itinerary import merge_location

logger = logging.getLogger(__name__)


class FavoriteTourStaging:
    """In-memory favorite id -> tour id map."""

    def __init__(self) -> None:
        self._mapping: dict[str, str] = {}

    def __contains__(self, favorite_id: object) -> bool:
        return favorite_id in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def items(self) -> list[tuple[str, str]]:
        return list(self._mapping.items())

    def select(self, favorite_id: str, tour_id: str) -> None:
        self._mapping[favorite_id] = tour_id

    def get(self, favorite_id: str) -> Optional[str]:
        return self._mapping.get(favorite_id)

    def discard(self, favorite_id: str) -> None:
        self._mapping.pop(favorite_id, None)

    def reset(self) -> None:
        self._mapping.clear()

    def resolve(self, favorite_id: str, tours: Iterable[Tour]) -> Tour:
        """Find the locally known tour staged for ``favorite_id``.

        Raises:
            NoTourSelected: If the favorite has no staged tour.
            TourNotFound: If the staged tour is not in ``tours``.
        """
        tour_id = self._mapping.get(favorite_id)
        if not tour_id:
            raise NoTourSelected(f"favorite {favorite_id} has no tour selected")
        for tour in tours:
            if tour.id == tour_id:
                return tour
        raise TourNotFound(f"tour {tour_id} staged for favorite {favorite_id} is not loaded")

    async def commit(
        self,
        favorite: Favorite,
        tours: Iterable[Tour],
        gateway: PersistenceGateway,
    ) -> Tour:
        """Copy ``favorite`` into its staged tour and submit the new day list.

        Returns the tour as stored by the backend. The staging entry is kept.
        """
        tour = self.resolve(favorite.id, tours)
        days = merge_location(tour.days, tour.start_date, Location.from_favorite(favorite))
        logger.info(f"[STAGING] Adding favorite {favorite.name} to tour {tour.id}")
        return await gateway.replace_tour_days(tour.id, days)
