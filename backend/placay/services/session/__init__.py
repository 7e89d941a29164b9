"""Per-viewer planner sessions."""

from .service import PlannerSession, SessionFactory, SessionRegistry

__all__ = ["PlannerSession", "SessionFactory", "SessionRegistry"]
