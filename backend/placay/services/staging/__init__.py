"""Favorite to tour staging map."""

from .service import FavoriteTourStaging

__all__ = ["FavoriteTourStaging"]
