"""Like state reconciliation."""

from .service import MAX_RECONCILE_ROUNDS, LikeReconciler

__all__ = ["LikeReconciler", "MAX_RECONCILE_ROUNDS"]
