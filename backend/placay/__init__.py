"""Placay itinerary planner backend."""

__version__ = "0.1.0"
