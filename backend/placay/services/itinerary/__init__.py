"""Location merge engine for tour day lists."""

from .service import (
    build_location,
    flatten_locations,
    merge_location,
    parse_coordinates,
    remove_location,
)

__all__ = [
    "build_location",
    "flatten_locations",
    "merge_location",
    "parse_coordinates",
    "remove_location",
]
