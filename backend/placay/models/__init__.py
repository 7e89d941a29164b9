"""Placay data models and error types."""

from .core import (
    Coordinates,
    Day,
    Favorite,
    FavoriteCreate,
    LikeState,
    Location,
    LocationInput,
    PlaceDetails,
    PlaceImage,
    Tour,
    TourCreate,
    format_duration,
)
from .errors import (
    AppError,
    ErrorCode,
    FavoriteNotFound,
    InvalidCoordinate,
    MissingStartDate,
    NoTourSelected,
    NotFoundError,
    PlacayError,
    RecoveryOption,
    TourNotFound,
    TransientNetworkError,
    ValidationError,
)

__all__ = [
    # Core
    "Coordinates",
    "Day",
    "Favorite",
    "FavoriteCreate",
    "LikeState",
    "Location",
    "LocationInput",
    "PlaceDetails",
    "PlaceImage",
    "Tour",
    "TourCreate",
    "format_duration",
    # Errors
    "AppError",
    "ErrorCode",
    "FavoriteNotFound",
    "InvalidCoordinate",
    "MissingStartDate",
    "NoTourSelected",
    "NotFoundError",
    "PlacayError",
    "RecoveryOption",
    "TourNotFound",
    "TransientNetworkError",
    "ValidationError",
]
