"""API tests: FastAPI TestClient against sessions backed by the in-memory fakes."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from placay.api.routes import get_registry
from placay.main import app
from placay.models import Favorite, Tour, TransientNetworkError
from placay.services.enrichment import ImageEnrichmentService
from placay.services.gateways import ViewerIdentity
from placay.services.session import PlannerSession, SessionRegistry
from tests.fakes import (
    FakeLikeGateway,
    FakePersistenceGateway,
    FakePlaceLookupGateway,
    details_with_photos,
)

PHOTO_BASE = "http://localhost:3000/google/photo"
VIEWER = {"X-Viewer-Id": "u1", "Authorization": "Bearer tok"}


class Backend:
    """The fakes shared by every session the registry creates."""

    def __init__(self) -> None:
        self.persistence = FakePersistenceGateway()
        self.likes = FakeLikeGateway()
        self.places = FakePlaceLookupGateway({"ChIJ-eiffel": details_with_photos("ref-e")})
        self.viewers: list[ViewerIdentity] = []

    def session(self, viewer: ViewerIdentity) -> PlannerSession:
        self.viewers.append(viewer)
        return PlannerSession(
            viewer,
            self.persistence,
            self.likes,
            ImageEnrichmentService(self.places, photo_base_url=PHOTO_BASE),
        )


@pytest.fixture
def backend():
    backend = Backend()
    registry = SessionRegistry(backend.session)
    app.dependency_overrides[get_registry] = lambda: registry
    yield backend
    app.dependency_overrides.clear()


@pytest.fixture
def client(backend):
    with TestClient(app) as client:
        yield client


def seed_tour(backend: Backend, **overrides) -> Tour:
    fields = {
        "id": "t1",
        "user_id": "u1",
        "title": "Paris",
        "start_date": date(2024, 6, 1),
        "end_date": date(2024, 6, 2),
    }
    fields.update(overrides)
    return backend.persistence.add_tour(Tour(**fields))


class TestViewer:
    def test_health(self, client) -> None:
        assert client.get("/health").json() == {"status": "healthy"}

    def test_missing_viewer_header(self, client) -> None:
        response = client.get("/api/tours")
        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "VALIDATION_ERROR"

    def test_token_is_passed_through(self, client, backend) -> None:
        client.get("/api/tours", headers=VIEWER)
        assert backend.viewers == [ViewerIdentity("u1", token="tok")]

    def test_request_without_token_does_not_borrow_session(self, client, backend) -> None:
        backend.persistence.add_favorite(
            Favorite(id="f1", user="u1", name="Louvre", latitude=48.86, longitude=2.33)
        )
        client.get("/api/favorites", headers=VIEWER)

        response = client.put(
            "/api/favorites/f1/tour", headers={"X-Viewer-Id": "u1"}, json={"tourId": "t1"}
        )

        assert response.status_code == 404
        assert backend.viewers == [ViewerIdentity("u1", token="tok"), ViewerIdentity("u1", token=None)]

    def test_rotated_token_gets_new_session(self, client, backend) -> None:
        client.get("/api/tours", headers=VIEWER)
        client.get("/api/tours", headers={"X-Viewer-Id": "u1", "Authorization": "Bearer new"})
        client.get("/api/tours", headers=VIEWER)

        assert backend.viewers == [ViewerIdentity("u1", token="tok"), ViewerIdentity("u1", token="new")]

    def test_end_session(self, client, backend) -> None:
        client.get("/api/tours", headers=VIEWER)

        assert client.delete("/api/session", headers=VIEWER).json() == {"success": True, "ended": True}
        assert client.delete("/api/session", headers=VIEWER).json() == {"success": True, "ended": False}
        assert backend.persistence.closed is True

        client.get("/api/tours", headers=VIEWER)
        assert len(backend.viewers) == 2


class TestTourRoutes:
    def test_list_tours_uses_persisted_field_names(self, client, backend) -> None:
        seed_tour(backend)

        response = client.get("/api/tours", headers=VIEWER)

        assert response.status_code == 200
        tour = response.json()["tours"][0]
        assert tour["_id"] == "t1"
        assert tour["startDate"] == "2024-06-01"
        assert tour["duration"] == "2 days"

    def test_create_tour(self, client) -> None:
        response = client.post(
            "/api/tours",
            headers=VIEWER,
            json={"title": "Rome", "destination": "Rome", "startDate": "2024-07-01", "endDate": "2024-07-01"},
        )

        assert response.status_code == 200
        tour = response.json()["tour"]
        assert tour["days"] == []
        assert tour["duration"] == "1 day"

    def test_create_tour_rejects_inverted_dates(self, client) -> None:
        response = client.post(
            "/api/tours",
            headers=VIEWER,
            json={"title": "Rome", "destination": "Rome", "startDate": "2024-07-03", "endDate": "2024-07-01"},
        )
        assert response.status_code == 422

    def test_add_location(self, client, backend) -> None:
        seed_tour(backend)
        client.get("/api/tours", headers=VIEWER)

        response = client.post(
            "/api/tours/t1/locations",
            headers=VIEWER,
            json={"name": "Eiffel Tower", "latitude": "48.8584", "longitude": "2.2945", "googlePOIId": "ChIJ-eiffel"},
        )

        assert response.status_code == 200
        day = response.json()["tour"]["days"][0]
        assert day["date"] == "2024-06-01"
        assert day["locations"][0]["googlePOIId"] == "ChIJ-eiffel"

    def test_invalid_coordinate(self, client, backend) -> None:
        seed_tour(backend)
        client.get("/api/tours", headers=VIEWER)

        response = client.post(
            "/api/tours/t1/locations",
            headers=VIEWER,
            json={"name": "Nowhere", "latitude": "abc", "longitude": "2"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_COORDINATE"
        assert backend.persistence.count("replace_tour_days") == 0

    def test_unknown_tour(self, client) -> None:
        response = client.post(
            "/api/tours/nope/locations",
            headers=VIEWER,
            json={"name": "X", "latitude": 1, "longitude": 2},
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "TOUR_NOT_FOUND"

    def test_backend_failure_is_bad_gateway(self, client, backend) -> None:
        seed_tour(backend)
        client.get("/api/tours", headers=VIEWER)
        backend.persistence.fail_next = TransientNetworkError("PUT /tour/t1 returned HTTP 500", status_code=500)

        response = client.post(
            "/api/tours/t1/locations",
            headers=VIEWER,
            json={"name": "X", "latitude": 1, "longitude": 2},
        )

        assert response.status_code == 502
        error = response.json()["error"]
        assert error["code"] == "NETWORK_ERROR"
        assert error["recovery_options"]

    def test_remove_location(self, client, backend) -> None:
        seed_tour(
            backend,
            days=[
                {
                    "_id": "d1",
                    "date": "2024-06-01",
                    "locations": [{"_id": "l1", "name": "A", "latitude": 1, "longitude": 1}],
                }
            ],
        )
        client.get("/api/tours", headers=VIEWER)

        response = client.delete("/api/tours/t1/days/d1/locations/l1", headers=VIEWER)

        assert response.status_code == 200
        assert response.json()["tour"]["days"][0]["locations"] == []

    def test_delete_tour(self, client, backend) -> None:
        seed_tour(backend)
        client.get("/api/tours", headers=VIEWER)

        response = client.delete("/api/tours/t1", headers=VIEWER)

        assert response.json() == {"success": True, "deleted": "t1"}
        assert "t1" not in backend.persistence.tours

    def test_images(self, client, backend) -> None:
        seed_tour(
            backend,
            days=[
                {
                    "_id": "d1",
                    "date": "2024-06-01",
                    "locations": [
                        {"_id": "l1", "name": "Eiffel Tower", "latitude": 48.8584, "longitude": 2.2945, "googlePOIId": "ChIJ-eiffel"}
                    ],
                }
            ],
        )
        client.get("/api/tours", headers=VIEWER)

        body = client.get("/api/tours/t1/images", headers=VIEWER).json()

        assert body["loading"] is False
        assert body["failed"] == 0
        assert body["images"][0]["image"] == f"{PHOTO_BASE}?photoReference=ref-e"


class TestLikeRoutes:
    def test_get_and_toggle(self, client, backend) -> None:
        backend.likes.likers["t1"] = {"u2"}

        state = client.get("/api/tours/t1/likes", headers=VIEWER).json()
        assert (state["liked"], state["total_likes"]) == (False, 1)

        state = client.post("/api/tours/t1/likes", headers=VIEWER).json()
        assert (state["liked"], state["total_likes"]) == (True, 2)
        assert backend.likes.add_like_calls == [("u1", "t1")]

    def test_failed_like_is_bad_gateway(self, client, backend) -> None:
        backend.likes.fail_add_like = True
        response = client.post("/api/tours/t1/likes", headers=VIEWER)
        assert response.status_code == 502


class TestFavoriteRoutes:
    def test_save_and_list(self, client) -> None:
        created = client.post(
            "/api/favorites",
            headers=VIEWER,
            json={"name": "Louvre", "latitude": 48.86, "longitude": 2.33, "googlePOIId": "p"},
        )
        assert created.status_code == 200

        favorites = client.get("/api/favorites", headers=VIEWER).json()["favorites"]
        assert [f["name"] for f in favorites] == ["Louvre"]

    def test_stage_and_commit(self, client, backend) -> None:
        seed_tour(backend)
        backend.persistence.add_favorite(
            Favorite(id="f1", user="u1", name="Louvre", latitude=48.86, longitude=2.33)
        )
        client.get("/api/tours", headers=VIEWER)
        client.get("/api/favorites", headers=VIEWER)

        staged = client.put("/api/favorites/f1/tour", headers=VIEWER, json={"tourId": "t1"})
        assert staged.json()["staging"] == {"f1": "t1"}

        committed = client.post("/api/favorites/f1/commit", headers=VIEWER)
        assert committed.status_code == 200
        assert committed.json()["tour"]["days"][0]["locations"][0]["name"] == "Louvre"

    def test_commit_without_selection(self, client, backend) -> None:
        backend.persistence.add_favorite(
            Favorite(id="f1", user="u1", name="Louvre", latitude=48.86, longitude=2.33)
        )
        client.get("/api/favorites", headers=VIEWER)

        response = client.post("/api/favorites/f1/commit", headers=VIEWER)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "NO_TOUR_SELECTED"

    def test_reset_staging(self, client, backend) -> None:
        backend.persistence.add_favorite(
            Favorite(id="f1", user="u1", name="Louvre", latitude=48.86, longitude=2.33)
        )
        client.get("/api/favorites", headers=VIEWER)
        client.put("/api/favorites/f1/tour", headers=VIEWER, json={"tourId": "t1"})

        response = client.delete("/api/staging", headers=VIEWER)

        assert response.json()["staging"] == {}

    def test_delete_unknown_favorite(self, client) -> None:
        response = client.delete("/api/favorites/f404", headers=VIEWER)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "FAVORITE_NOT_FOUND"
