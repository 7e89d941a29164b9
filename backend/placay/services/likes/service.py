"""Like reconciliation for one (tour, viewer) pair.

Two signals are tracked independently:
- ``liked``: whether this viewer likes the tour (viewer-scoped query)
- ``total_likes``: aggregate count for the tour (not viewer-scoped)

Both are fetched on mount and again whenever the local ``liked`` flag
changes. The two fetches run concurrently and each signal is applied as soon
as its own response arrives, so the flag and the count can briefly disagree.
They converge once both re-fetches have completed.

Toggle protocol (flip-then-reconcile):
1. Send one add-like request.
2. On success, flip the local flag. The response body is not consulted.
3. Re-fetch both signals because the flag changed.

Clicks are neither de-duplicated nor serialized. Two clicks before the first
response arrives send two add-like requests and flip the flag twice; the
re-fetch afterwards pulls the flag back to whatever the server says.
"""

import asyncio
import logging

from placay.models import LikeState
from placay.services.gateways import LikeGateway

logger = logging.getLogger(__name__)

# Re-fetch rounds allowed while the server keeps changing the local flag.
MAX_RECONCILE_ROUNDS = 3


class LikeReconciler:
    """Owns the :class:`LikeState` of one tour card for one viewer."""

    def __init__(self, gateway: LikeGateway, viewer_id: str, tour_id: str) -> None:
        self._gateway = gateway
        self.viewer_id = viewer_id
        self.tour_id = tour_id
        self.state = LikeState()
        self._mounted = True
        # Bumped on unmount; responses issued under an older generation are dropped.
        self._generation = 0

    @property
    def mounted(self) -> bool:
        return self._mounted

    def unmount(self) -> None:
        """Stop applying responses. In-flight requests finish but are ignored."""
        self._mounted = False
        self._generation += 1

    def _is_current(self, generation: int) -> bool:
        return self._mounted and generation == self._generation

    def snapshot(self) -> LikeState:
        return self.state.model_copy()

    async def _fetch_liked(self) -> bool:
        """Fetch and apply the viewer's flag. Returns True if the flag changed."""
        generation = self._generation
        try:
            liked = await self._gateway.get_liked_by_viewer(self.viewer_id, self.tour_id)
        except Exception as e:
            logger.warning(f"[LIKES] Flag fetch failed for tour {self.tour_id}: {e}")
            return False
        if not self._is_current(generation):
            return False
        changed = liked != self.state.liked
        self.state.liked = liked
        return changed

    async def _fetch_total(self) -> None:
        generation = self._generation
        try:
            total = await self._gateway.get_total_likes(self.tour_id)
        except Exception as e:
            logger.warning(f"[LIKES] Count fetch failed for tour {self.tour_id}: {e}")
            return
        if self._is_current(generation):
            self.state.total_likes = max(0, total)

    async def refresh(self) -> LikeState:
        """Re-fetch both signals until the flag stops changing."""
        for _ in range(MAX_RECONCILE_ROUNDS):
            flag_changed, _total = await asyncio.gather(
                self._fetch_liked(), self._fetch_total()
            )
            if not flag_changed:
                break
        return self.snapshot()

    async def mount(self) -> LikeState:
        self._mounted = True
        return await self.refresh()

    async def toggle(self) -> LikeState:
        """Send one add-like and flip the local flag on success.

        Raises:
            TransientNetworkError: If the add-like request fails. The flag is
                left as it was.
        """
        generation = self._generation
        await self._gateway.add_like(self.viewer_id, self.tour_id)
        if not self._is_current(generation):
            return self.snapshot()
        self.state.liked = not self.state.liked
        logger.debug(f"[LIKES] Tour {self.tour_id} flag flipped to {self.state.liked}")
        return await self.refresh()
