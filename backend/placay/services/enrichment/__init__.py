"""Location image enrichment from the places lookup."""

from .service import ImageEnrichmentService, ImageLoad

__all__ = ["ImageEnrichmentService", "ImageLoad"]
