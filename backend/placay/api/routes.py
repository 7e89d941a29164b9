"""API routes for Placay.

Thin HTTP surface over the planner session of the calling viewer:
- Tours: list, create, delete, add/remove locations, load images
- Favorites: list, save, delete, stage to a tour, commit into the tour
- Likes: mount state, toggle
- Session: end the caller's planner session and release its clients

The viewer identity comes from the ``X-Viewer-Id`` header and the bearer
token in ``Authorization``; both are passed through to the backend unchanged.
Sessions are looked up by the pair, so a request never runs on a session
built for another token.
Domain errors are turned into the JSON error envelope by the handlers in
``placay.main``.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel, ConfigDict, Field

from placay.config import get_settings
from placay.models import (
    Favorite,
    FavoriteCreate,
    LocationInput,
    Tour,
    TourCreate,
)
from placay.services import (
    CacheService,
    HttpLikeGateway,
    HttpPersistenceGateway,
    HttpPlaceLookupGateway,
    ImageEnrichmentService,
    PlannerSession,
    SessionRegistry,
    ViewerIdentity,
    create_cache_service,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# Request/Response models
class StageFavoriteRequest(BaseModel):
    """Pick the tour a favorite should be added to."""

    model_config = ConfigDict(populate_by_name=True)

    tour_id: str = Field(..., min_length=1, alias="tourId")


class TourListResponse(BaseModel):
    success: bool = True
    tours: list[Tour]


class TourResponse(BaseModel):
    success: bool = True
    tour: Tour


class FavoriteListResponse(BaseModel):
    success: bool = True
    favorites: list[Favorite]


class FavoriteResponse(BaseModel):
    success: bool = True
    favorite: Favorite


class StagingResponse(BaseModel):
    success: bool = True
    staging: dict[str, str] = Field(
        default_factory=dict, description="Favorite id -> tour id"
    )


class LikeResponse(BaseModel):
    success: bool = True
    tour_id: str
    liked: bool
    total_likes: int


class ImagesResponse(BaseModel):
    success: bool = True
    tour_id: str
    loading: bool
    images: list[dict]
    failed: int = 0


class DeleteResponse(BaseModel):
    success: bool = True
    deleted: str


class SessionEndResponse(BaseModel):
    success: bool = True
    ended: bool = Field(..., description="False when no session was open")


# Service instances
_cache_service: CacheService | None = None
_place_gateway: HttpPlaceLookupGateway | None = None
_enrichment_service: ImageEnrichmentService | None = None
_registry: SessionRegistry | None = None


def get_cache_service() -> CacheService:
    global _cache_service
    if _cache_service is None:
        settings = get_settings()
        _cache_service = create_cache_service(settings.redis_url, settings.place_cache_ttl)
    return _cache_service


def get_place_gateway() -> HttpPlaceLookupGateway:
    global _place_gateway
    if _place_gateway is None:
        settings = get_settings()
        _place_gateway = HttpPlaceLookupGateway(
            settings.api_base_url, timeout=settings.http_timeout
        )
    return _place_gateway


def get_enrichment_service() -> ImageEnrichmentService:
    global _enrichment_service
    if _enrichment_service is None:
        settings = get_settings()
        _enrichment_service = ImageEnrichmentService(
            get_place_gateway(),
            photo_base_url=settings.photo_base_url,
            cache=get_cache_service(),
            concurrency=settings.enrichment_concurrency,
            cache_ttl=settings.place_cache_ttl,
        )
    return _enrichment_service


def build_session(viewer: ViewerIdentity) -> PlannerSession:
    """Create a session whose gateways authenticate as ``viewer``."""
    settings = get_settings()
    return PlannerSession(
        viewer,
        persistence=HttpPersistenceGateway(
            settings.api_base_url, token=viewer.token, timeout=settings.http_timeout
        ),
        likes=HttpLikeGateway(
            settings.api_base_url, token=viewer.token, timeout=settings.http_timeout
        ),
        enrichment=get_enrichment_service(),
    )


def get_registry() -> SessionRegistry:
    global _registry
    if _registry is None:
        _registry = SessionRegistry(
            build_session, max_sessions=get_settings().max_sessions
        )
    return _registry


async def shutdown_services() -> None:
    """Close sessions and shared clients. Called from the app lifespan."""
    global _cache_service, _place_gateway, _enrichment_service, _registry
    if _registry is not None:
        await _registry.close_all()
    if _place_gateway is not None:
        await _place_gateway.close()
    if _cache_service is not None:
        await _cache_service.close()
    _cache_service = _place_gateway = _enrichment_service = _registry = None


def get_viewer(
    x_viewer_id: str = Header(..., min_length=1),
    authorization: Optional[str] = Header(None),
) -> ViewerIdentity:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip() or None
    return ViewerIdentity(viewer_id=x_viewer_id, token=token)


async def get_session(
    viewer: ViewerIdentity = Depends(get_viewer),
    registry: SessionRegistry = Depends(get_registry),
) -> PlannerSession:
    return await registry.get(viewer)


# Tours


@router.get("/tours", response_model=TourListResponse)
async def list_tours(session: PlannerSession = Depends(get_session)) -> TourListResponse:
    """Reload the viewer's tours from the backend."""
    tours = await session.refresh_tours()
    return TourListResponse(tours=tours)


@router.post("/tours", response_model=TourResponse)
async def create_tour(
    request: TourCreate, session: PlannerSession = Depends(get_session)
) -> TourResponse:
    tour = await session.create_tour(request)
    return TourResponse(tour=tour)


@router.delete("/tours/{tour_id}", response_model=DeleteResponse)
async def delete_tour(
    tour_id: str, session: PlannerSession = Depends(get_session)
) -> DeleteResponse:
    await session.delete_tour(tour_id)
    return DeleteResponse(deleted=tour_id)


@router.post("/tours/{tour_id}/locations", response_model=TourResponse)
async def add_location(
    tour_id: str,
    request: LocationInput,
    session: PlannerSession = Depends(get_session),
) -> TourResponse:
    """Add an ad-hoc POI to the tour's first day (creating it if needed)."""
    tour = await session.add_location(tour_id, request)
    return TourResponse(tour=tour)


@router.delete(
    "/tours/{tour_id}/days/{day_id}/locations/{location_id}",
    response_model=TourResponse,
)
async def remove_location(
    tour_id: str,
    day_id: str,
    location_id: str,
    session: PlannerSession = Depends(get_session),
) -> TourResponse:
    tour = await session.remove_location(tour_id, day_id, location_id)
    return TourResponse(tour=tour)


@router.get("/tours/{tour_id}/images", response_model=ImagesResponse)
async def load_tour_images(
    tour_id: str, session: PlannerSession = Depends(get_session)
) -> ImagesResponse:
    """Backfill location images. Returns once every lookup has settled."""
    load = await session.load_images(tour_id)
    return ImagesResponse(
        tour_id=tour_id,
        loading=load.loading,
        images=load.images(),
        failed=len(load.failed),
    )


@router.get("/tours/{tour_id}/likes", response_model=LikeResponse)
async def get_likes(
    tour_id: str, session: PlannerSession = Depends(get_session)
) -> LikeResponse:
    state = await session.like_state(tour_id)
    return LikeResponse(tour_id=tour_id, liked=state.liked, total_likes=state.total_likes)


@router.post("/tours/{tour_id}/likes", response_model=LikeResponse)
async def toggle_like(
    tour_id: str, session: PlannerSession = Depends(get_session)
) -> LikeResponse:
    state = await session.toggle_like(tour_id)
    return LikeResponse(tour_id=tour_id, liked=state.liked, total_likes=state.total_likes)


# Favorites


@router.get("/favorites", response_model=FavoriteListResponse)
async def list_favorites(
    session: PlannerSession = Depends(get_session),
) -> FavoriteListResponse:
    favorites = await session.refresh_favorites()
    return FavoriteListResponse(favorites=favorites)


@router.post("/favorites", response_model=FavoriteResponse)
async def add_favorite(
    request: FavoriteCreate, session: PlannerSession = Depends(get_session)
) -> FavoriteResponse:
    favorite = await session.add_favorite(request)
    return FavoriteResponse(favorite=favorite)


@router.delete("/favorites/{favorite_id}", response_model=DeleteResponse)
async def delete_favorite(
    favorite_id: str, session: PlannerSession = Depends(get_session)
) -> DeleteResponse:
    await session.delete_favorite(favorite_id)
    return DeleteResponse(deleted=favorite_id)


@router.put("/favorites/{favorite_id}/tour", response_model=StagingResponse)
async def stage_favorite(
    favorite_id: str,
    request: StageFavoriteRequest,
    session: PlannerSession = Depends(get_session),
) -> StagingResponse:
    session.stage_favorite(favorite_id, request.tour_id)
    return StagingResponse(staging=dict(session.staging.items()))


@router.post("/favorites/{favorite_id}/commit", response_model=TourResponse)
async def commit_favorite(
    favorite_id: str, session: PlannerSession = Depends(get_session)
) -> TourResponse:
    """Copy a staged favorite into its tour."""
    tour = await session.commit_favorite(favorite_id)
    return TourResponse(tour=tour)


@router.delete("/staging", response_model=StagingResponse)
async def reset_staging(session: PlannerSession = Depends(get_session)) -> StagingResponse:
    session.reset_staging()
    return StagingResponse()


# Session


@router.delete("/session", response_model=SessionEndResponse)
async def end_session(
    viewer: ViewerIdentity = Depends(get_viewer),
    registry: SessionRegistry = Depends(get_registry),
) -> SessionEndResponse:
    """Drop the caller's local state (tours, favorites, staging, likes)."""
    ended = await registry.reset(viewer)
    return SessionEndResponse(ended=ended)
