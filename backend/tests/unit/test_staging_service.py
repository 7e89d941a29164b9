"""Unit tests for favorite -> tour staging."""

from datetime import date

import pytest

from placay.models import (
    Day,
    Favorite,
    Location,
    NoTourSelected,
    Tour,
    TourNotFound,
    TransientNetworkError,
)
from placay.services.staging import FavoriteTourStaging
from tests.fakes import FakePersistenceGateway


def favorite() -> Favorite:
    return Favorite(
        id="fav1",
        user="u1",
        name="Eiffel Tower",
        latitude=48.8584,
        longitude=2.2945,
        google_poi_id="ChIJ...",
    )


def empty_tour(tour_id: str = "t1") -> Tour:
    return Tour(id=tour_id, user_id="u1", title="Paris", start_date=date(2024, 6, 1))


class TestFavoriteTourStagingMap:
    def setup_method(self) -> None:
        self.staging = FavoriteTourStaging()

    def test_starts_empty(self) -> None:
        assert len(self.staging) == 0
        assert self.staging.get("fav1") is None

    def test_select_and_reselect(self) -> None:
        self.staging.select("fav1", "t1")
        self.staging.select("fav1", "t2")
        assert self.staging.get("fav1") == "t2"
        assert "fav1" in self.staging
        assert len(self.staging) == 1

    def test_discard_and_reset(self) -> None:
        self.staging.select("fav1", "t1")
        self.staging.select("fav2", "t1")
        self.staging.discard("fav1")
        assert self.staging.items() == [("fav2", "t1")]
        self.staging.reset()
        assert len(self.staging) == 0

    def test_instances_are_independent(self) -> None:
        other = FavoriteTourStaging()
        self.staging.select("fav1", "t1")
        assert "fav1" not in other


class TestResolve:
    def setup_method(self) -> None:
        self.staging = FavoriteTourStaging()

    def test_no_tour_selected(self) -> None:
        with pytest.raises(NoTourSelected):
            self.staging.resolve("fav1", [empty_tour()])

    def test_tour_not_in_local_set(self) -> None:
        self.staging.select("fav1", "t-deleted")
        with pytest.raises(TourNotFound):
            self.staging.resolve("fav1", [empty_tour()])

    def test_finds_tour(self) -> None:
        tour = empty_tour()
        self.staging.select("fav1", "t1")
        assert self.staging.resolve("fav1", [empty_tour("t0"), tour]) is tour


class TestCommit:
    def setup_method(self) -> None:
        self.staging = FavoriteTourStaging()
        self.gateway = FakePersistenceGateway()

    @pytest.mark.asyncio
    async def test_commit_into_empty_tour(self) -> None:
        tour = self.gateway.add_tour(empty_tour())
        self.staging.select("fav1", "t1")

        stored = await self.staging.commit(favorite(), [tour], self.gateway)

        assert len(stored.days) == 1
        assert stored.days[0].date == date(2024, 6, 1)
        location = stored.days[0].locations[0]
        assert (location.name, location.latitude, location.longitude, location.google_poi_id) == (
            "Eiffel Tower",
            48.8584,
            2.2945,
            "ChIJ...",
        )
        assert self.gateway.count("replace_tour_days") == 1

    @pytest.mark.asyncio
    async def test_commit_appends_to_first_day(self) -> None:
        tour = self.gateway.add_tour(
            empty_tour().model_copy(
                update={
                    "days": [
                        Day(
                            id="d1",
                            date=date(2024, 6, 1),
                            locations=[Location(id="l1", name="Louvre", latitude=48.86, longitude=2.33)],
                        ),
                        Day(id="d2", date=date(2024, 6, 2)),
                    ]
                }
            )
        )
        self.staging.select("fav1", "t1")

        stored = await self.staging.commit(favorite(), [tour], self.gateway)

        assert [loc.name for loc in stored.days[0].locations] == ["Louvre", "Eiffel Tower"]
        assert stored.days[1].locations == []

    @pytest.mark.asyncio
    async def test_commit_keeps_mapping(self) -> None:
        tour = self.gateway.add_tour(empty_tour())
        self.staging.select("fav1", "t1")
        await self.staging.commit(favorite(), [tour], self.gateway)
        assert self.staging.get("fav1") == "t1"

    @pytest.mark.asyncio
    async def test_no_selection_makes_no_request(self) -> None:
        with pytest.raises(NoTourSelected):
            await self.staging.commit(favorite(), [empty_tour()], self.gateway)
        assert self.gateway.calls == []

    @pytest.mark.asyncio
    async def test_favorite_is_not_linked_to_location(self) -> None:
        tour = self.gateway.add_tour(empty_tour())
        fav = favorite()
        self.staging.select("fav1", "t1")

        stored = await self.staging.commit(fav, [tour], self.gateway)

        assert stored.days[0].locations[0].id != fav.id
        assert fav.name == "Eiffel Tower"

    @pytest.mark.asyncio
    async def test_gateway_failure_propagates(self) -> None:
        tour = self.gateway.add_tour(empty_tour())
        self.staging.select("fav1", "t1")
        self.gateway.fail_next = TransientNetworkError("PUT /tour/t1 returned HTTP 500")

        with pytest.raises(TransientNetworkError):
            await self.staging.commit(favorite(), [tour], self.gateway)
        assert tour.days == []
