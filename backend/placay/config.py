"""Runtime configuration loaded from the environment (and ``.env`` if present)."""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_API_BASE_URL = "http://localhost:3000"
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"


def _split_origins(raw: str) -> list[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    """Planner settings.

    Attributes:
        api_base_url: Base URL of the Placay REST backend (tours, favorites,
            likes and the Google places proxy).
        photo_base_url: Endpoint that turns a photo reference into an image.
        http_timeout: Per-request timeout for gateway calls, in seconds.
        enrichment_concurrency: Max simultaneous place lookups per tour.
        place_cache_ttl: TTL for cached photo references, in seconds.
        redis_url: Redis for the place cache; in-process LRU when unset.
        max_sessions: Live planner sessions kept before the least recently
            used one is closed.
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    photo_base_url: str = f"{DEFAULT_API_BASE_URL}/google/photo"
    http_timeout: float = 10.0
    enrichment_concurrency: int = 5
    place_cache_ttl: int = 86400
    redis_url: Optional[str] = None
    max_sessions: int = 256
    cors_origins: list[str] = field(
        default_factory=lambda: _split_origins(DEFAULT_CORS_ORIGINS)
    )
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        api_base_url = os.getenv("PLACAY_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/")
        return cls(
            api_base_url=api_base_url,
            photo_base_url=os.getenv(
                "PLACAY_PHOTO_BASE_URL", f"{api_base_url}/google/photo"
            ),
            http_timeout=float(os.getenv("PLACAY_HTTP_TIMEOUT", "10.0")),
            enrichment_concurrency=max(
                1, int(os.getenv("PLACAY_ENRICHMENT_CONCURRENCY", "5"))
            ),
            place_cache_ttl=int(os.getenv("PLACAY_PLACE_CACHE_TTL", "86400")),
            redis_url=os.getenv("REDIS_URL") or None,
            max_sessions=max(1, int(os.getenv("PLACAY_MAX_SESSIONS", "256"))),
            cors_origins=_split_origins(
                os.getenv("PLACAY_CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
