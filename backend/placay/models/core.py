"""Core data models for Placay.

Pydantic models for tours, their dated days and locations, saved favorites,
and the per-viewer like state. Field names are snake_case in Python; the
persisted JSON shape uses the aliases (``_id``, ``googlePOIId``,
``startDate``...) so models round-trip with the backend unchanged.
"""

import datetime as dt
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Coordinates(BaseModel):
    """Geographic coordinates with validation.

    Latitude must be between -90 and 90 degrees.
    Longitude must be between -180 and 180 degrees.
    """

    lat: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    lng: float = Field(..., ge=-180, le=180, description="Longitude in degrees")


class PersistedModel(BaseModel):
    """Base for documents that carry a backend ``_id``."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id", description="Backend identity")


class Location(PersistedModel):
    """A point of interest placed inside a day.

    The image is backfilled asynchronously and is never required.
    """

    name: str = Field(..., min_length=1, description="Display name")
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    longitude: float = Field(
        ..., ge=-180, le=180, description="Longitude in degrees"
    )
    google_poi_id: str = Field(
        "", alias="googlePOIId", description="External place identifier"
    )
    image: Optional[str] = Field(None, description="Display image URL")

    @classmethod
    def from_favorite(cls, favorite: "Favorite") -> "Location":
        """Copy a favorite's fields into a new, unsaved location."""
        return cls(
            name=favorite.name,
            latitude=favorite.latitude,
            longitude=favorite.longitude,
            google_poi_id=favorite.google_poi_id,
        )


class Day(PersistedModel):
    """A date-scoped ordered list of locations."""

    date: Optional[dt.date] = Field(None, description="Calendar date of this day")
    locations: list[Location] = Field(
        default_factory=list, description="Locations in visit order"
    )


class Tour(PersistedModel):
    """A planned trip composed of dated days.

    ``duration`` is a display string. When the backend does not send one it is
    derived from the inclusive start/end date span.
    """

    user_id: str = Field(..., min_length=1, description="Owner reference")
    title: str = Field(..., description="Tour title")
    destination: Optional[str] = Field(None, description="Destination label")
    start_date: Optional[dt.date] = Field(None, alias="startDate")
    end_date: Optional[dt.date] = Field(None, alias="endDate")
    duration: Optional[str] = Field(None, description="Display duration")
    days: list[Day] = Field(
        default_factory=list, description="Days in chronological order"
    )

    @model_validator(mode="after")
    def _derive_duration(self) -> "Tour":
        if not self.duration:
            self.duration = format_duration(self.start_date, self.end_date)
        return self

    def find_day(self, day_id: str) -> Optional[Day]:
        return next((day for day in self.days if day.id == day_id), None)


class Favorite(PersistedModel):
    """A user-saved point of interest, independent of any tour."""

    user: Optional[str] = Field(None, description="Owner reference")
    name: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    google_poi_id: str = Field("", alias="googlePOIId")


class LikeState(BaseModel):
    """Like signals for one (tour, viewer) pair.

    ``liked`` and ``total_likes`` come from independent reads and may disagree
    until both have been re-fetched.
    """

    liked: bool = False
    total_likes: int = Field(default=0, ge=0)


class PlaceImage(BaseModel):
    """A single photo descriptor from the places lookup."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    photo_reference: str = Field(..., alias="photoReference")


class PlaceDetails(BaseModel):
    """Place lookup response. Only the images are used."""

    model_config = ConfigDict(extra="ignore")

    images: list[PlaceImage] = Field(default_factory=list)


# Request payloads

Number = Union[float, int, str]


class LocationInput(BaseModel):
    """An ad-hoc POI typed in by the user.

    Coordinates stay raw (text inputs submit strings) until the merge engine
    parses them.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    latitude: Optional[Number] = None
    longitude: Optional[Number] = None
    google_poi_id: str = Field("", alias="googlePOIId")


class FavoriteCreate(LocationInput):
    """Fields for saving a new favorite."""


class TourCreate(BaseModel):
    """Fields for creating a tour. Days always start empty."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    start_date: dt.date = Field(..., alias="startDate")
    end_date: dt.date = Field(..., alias="endDate")

    @model_validator(mode="after")
    def _check_range(self) -> "TourCreate":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


def format_duration(start: Optional[dt.date], end: Optional[dt.date]) -> Optional[str]:
    """Format an inclusive date span as ``"1 day"`` / ``"N days"``."""
    if start is None or end is None or end < start:
        return None
    count = (end - start).days + 1
    return "1 day" if count == 1 else f"{count} days"
