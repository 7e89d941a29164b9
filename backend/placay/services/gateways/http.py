"""httpx implementations of the gateways against the Placay REST backend.

Architecture:
- One shared ``httpx.AsyncClient`` per gateway instance (connection pooling)
- Bearer token from the viewer identity on every request
- 404 -> NotFoundError subclass, anything else that fails -> TransientNetworkError
- No retries: a failed write is reported, the caller keeps its old state
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from placay.models import (
    Day,
    Favorite,
    FavoriteCreate,
    FavoriteNotFound,
    NotFoundError,
    PlaceDetails,
    Tour,
    TourCreate,
    TourNotFound,
    TransientNetworkError,
)
from placay.services.itinerary import parse_coordinates

from .base import LikeGateway, PersistenceGateway, PlaceLookupGateway

logger = logging.getLogger(__name__)


def _unwrap(data: Any, key: str) -> Any:
    """Backend responses are sometimes wrapped as ``{key: payload}``."""
    if isinstance(data, dict) and key in data:
        return data[key]
    return data


class PlacayApiClient:
    """Shared request plumbing for the Placay backend gateways."""

    HEADERS = {
        "User-Agent": "Placay-Planner/1.0",
        "Accept": "application/json",
    }

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self.HEADERS,
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _auth_headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        not_found: type[NotFoundError] = NotFoundError,
    ) -> Any:
        """Send a request and decode the JSON body.

        Raises:
            NotFoundError: (or ``not_found``) on HTTP 404.
            TransientNetworkError: On transport errors, timeouts, other
                non-2xx statuses, or an undecodable body.
        """
        client = self._get_client()
        try:
            response = await client.request(
                method, path, json=json, headers=self._auth_headers()
            )
        except httpx.HTTPError as e:
            logger.warning(f"[GATEWAY] {method} {path} failed: {type(e).__name__}: {e}")
            raise TransientNetworkError(
                f"{method} {path} failed: {type(e).__name__}"
            ) from e

        if response.status_code == 404:
            raise not_found(f"{method} {path} returned 404")
        if response.is_error:
            logger.warning(f"[GATEWAY] {method} {path} -> HTTP {response.status_code}")
            raise TransientNetworkError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransientNetworkError(f"{method} {path} returned invalid JSON") from e


def _parse(model: type, data: Any, what: str) -> Any:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise TransientNetworkError(f"unexpected {what} payload: {e}") from e


class HttpPersistenceGateway(PlacayApiClient, PersistenceGateway):
    """Tours live under ``/tour``, favorites under ``/user/favorite``."""

    async def get_tour(self, tour_id: str) -> Tour:
        data = await self._request("GET", f"/tour/one/{tour_id}", not_found=TourNotFound)
        return _parse(Tour, _unwrap(data, "tour"), "tour")

    async def list_tours(self, owner_id: str) -> list[Tour]:
        data = await self._request("GET", f"/tour/{owner_id}")
        return [_parse(Tour, item, "tour") for item in _unwrap(data, "tours") or []]

    async def replace_tour_days(self, tour_id: str, days: list[Day]) -> Tour:
        # Images are display-only and never persisted.
        payload = {
            "days": [
                day.model_dump(
                    mode="json",
                    by_alias=True,
                    exclude_none=True,
                    exclude={"locations": {"__all__": {"image"}}},
                )
                for day in days
            ]
        }
        data = await self._request(
            "PUT", f"/tour/{tour_id}", json=payload, not_found=TourNotFound
        )
        return _parse(Tour, _unwrap(data, "tour"), "tour")

    async def create_tour(self, owner_id: str, meta: TourCreate) -> Tour:
        payload = {**meta.model_dump(mode="json", by_alias=True), "days": []}
        data = await self._request("POST", f"/tour/{owner_id}", json=payload)
        return _parse(Tour, _unwrap(data, "tour"), "tour")

    async def delete_tour(self, tour_id: str) -> None:
        await self._request("DELETE", f"/tour/{tour_id}", not_found=TourNotFound)

    async def list_favorites(self, owner_id: str) -> list[Favorite]:
        # The owner is implied by the bearer token.
        data = await self._request("GET", "/user/favorite")
        return [
            _parse(Favorite, item, "favorite")
            for item in _unwrap(data, "favorites") or []
        ]

    async def create_favorite(self, owner_id: str, fields: FavoriteCreate) -> Favorite:
        coords = parse_coordinates(fields.latitude, fields.longitude)
        payload = {
            "name": fields.name,
            "latitude": coords.lat,
            "longitude": coords.lng,
            "googlePOIId": fields.google_poi_id,
        }
        data = await self._request("POST", "/user/favorite", json=payload)
        return _parse(Favorite, _unwrap(data, "favorite"), "favorite")

    async def delete_favorite(self, favorite_id: str) -> None:
        await self._request(
            "DELETE", f"/user/favorite/{favorite_id}", not_found=FavoriteNotFound
        )


class HttpLikeGateway(PlacayApiClient, LikeGateway):
    """Like flag at ``/user/like``, like count and add-like at ``/tour/liked``."""

    async def get_liked_by_viewer(self, viewer_id: str, tour_id: str) -> bool:
        data = await self._request("GET", f"/user/like/{viewer_id}/{tour_id}")
        return bool(_unwrap(data, "response"))

    async def get_total_likes(self, tour_id: str) -> int:
        data = await self._request("GET", f"/tour/liked/{tour_id}")
        try:
            return int(_unwrap(data, "tourLiked") or 0)
        except (TypeError, ValueError) as e:
            raise TransientNetworkError(f"unexpected like count: {data!r}") from e

    async def add_like(self, viewer_id: str, tour_id: str) -> None:
        # The response body is deliberately ignored.
        await self._request("POST", f"/tour/liked/{viewer_id}/{tour_id}")


class HttpPlaceLookupGateway(PlacayApiClient, PlaceLookupGateway):
    """Place details through the backend's Google places proxy."""

    async def get_place_details(self, place_id: str) -> PlaceDetails:
        if not place_id:
            raise ValueError("place_id cannot be empty")
        data = await self._request("GET", f"/google/details/{place_id}")
        return _parse(PlaceDetails, data or {}, "place details")
