"""Location merge engine.

Builds candidate day lists for a tour. Nothing here performs I/O or mutates
its inputs: the caller submits the returned list as a whole replacement of
the tour's days and keeps its previous list if that submission fails.

Placement policy for new locations:
- A tour with no days gets a single day dated at the tour's start date.
- Otherwise the location is appended to the end of the first day. Moving it
  to another day is a separate user action.
"""

import logging
import math
from datetime import date
from typing import Any, Optional

from placay.models import (
    Coordinates,
    Day,
    InvalidCoordinate,
    Location,
    MissingStartDate,
)

logger = logging.getLogger(__name__)


def _parse_degrees(value: Any, label: str, limit: float) -> float:
    if value is None or isinstance(value, bool):
        raise InvalidCoordinate(f"{label} is required")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidCoordinate(f"{label} is required")
    try:
        degrees = float(value)
    except (TypeError, ValueError):
        raise InvalidCoordinate(f"{label} is not a number: {value!r}") from None
    if not math.isfinite(degrees):
        raise InvalidCoordinate(f"{label} must be finite, got {value!r}")
    if not -limit <= degrees <= limit:
        raise InvalidCoordinate(f"{label} {degrees} outside [-{limit:g}, {limit:g}]")
    return degrees


def parse_coordinates(latitude: Any, longitude: Any) -> Coordinates:
    """Parse raw latitude/longitude input into validated coordinates.

    Accepts numbers or numeric strings.

    Raises:
        InvalidCoordinate: If either value is missing, unparseable, not
            finite, or outside [-90, 90] / [-180, 180].
    """
    return Coordinates(
        lat=_parse_degrees(latitude, "latitude", 90),
        lng=_parse_degrees(longitude, "longitude", 180),
    )


def build_location(
    name: str, latitude: Any, longitude: Any, google_poi_id: str = ""
) -> Location:
    """Create a new, unsaved location from raw user input."""
    coords = parse_coordinates(latitude, longitude)
    return Location(
        name=name,
        latitude=coords.lat,
        longitude=coords.lng,
        google_poi_id=google_poi_id,
    )


def merge_location(
    days: list[Day], start_date: Optional[date], new_location: Location
) -> list[Day]:
    """Return a new day list with ``new_location`` placed per the policy above.

    Days other than the first are passed through as the same objects.

    Raises:
        InvalidCoordinate: If the location's coordinates are invalid.
        MissingStartDate: If ``days`` is empty and there is no start date.
    """
    # Locations built with model_construct skip field validation.
    parse_coordinates(new_location.latitude, new_location.longitude)

    if not days:
        if start_date is None:
            raise MissingStartDate("cannot create the first day without a start date")
        logger.debug(f"[MERGE] Creating first day {start_date} for {new_location.name}")
        return [Day(date=start_date, locations=[new_location])]

    first = days[0]
    updated_first = first.model_copy(
        update={"locations": [*first.locations, new_location]}
    )
    logger.debug(
        f"[MERGE] Appending {new_location.name} to day {first.id or first.date} "
        f"({len(updated_first.locations)} locations)"
    )
    return [updated_first, *days[1:]]


def remove_location(days: list[Day], day_id: str, location_id: str) -> list[Day]:
    """Return a day list without the given location.

    An unknown ``day_id`` is a no-op: the original list is returned as-is.
    Removing a location that is already gone yields an equal list, so calling
    this twice has the same result as calling it once.
    """
    if not any(day.id == day_id for day in days):
        logger.debug(f"[MERGE] Day {day_id} not found, nothing to remove")
        return days

    return [
        day.model_copy(
            update={
                "locations": [loc for loc in day.locations if loc.id != location_id]
            }
        )
        if day.id == day_id
        else day
        for day in days
    ]


def flatten_locations(days: list[Day]) -> list[Location]:
    """All locations of a tour, in day order then visit order."""
    return [location for day in days for location in day.locations]
