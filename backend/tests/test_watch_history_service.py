from datetime import datetime

import pytest

from cinelog.core.exceptions import AccessDeniedException, EntryNotFoundException, InvalidInputException
from cinelog.services.watch_history_service import WatchHistoryService, validate_rating


@pytest.fixture
def service(db_session):
    return WatchHistoryService(db_session)


@pytest.fixture
def alice(users):
    return users[0]


@pytest.fixture
def bob(users):
    return users[1]


class TestValidateRating:
    @pytest.mark.parametrize("rating", [1, 5, 10, None])
    def test_accepts_range_and_none(self, rating):
        assert validate_rating(rating) == rating

    @pytest.mark.parametrize("rating", [0, 11, -1, 7.5, "8", True])
    def test_rejects_everything_else(self, rating):
        with pytest.raises(InvalidInputException) as exc:
            validate_rating(rating)
        assert exc.value.message == "Rating must be between 1 and 10"


class TestAddEntry:
    def test_creates_entry(self, service, alice, movies):
        entry, created = service.add_entry(alice.id, movies[0].id, datetime(2024, 3, 1), rating=8, notes="great")
        assert created is True
        assert entry.rating == 8
        assert entry.rewatch_count == 0

    def test_rewatch_increments_counter(self, service, alice, movies):
        first, _ = service.add_entry(alice.id, movies[0].id, datetime(2024, 3, 1), rating=6)
        again, created = service.add_entry(alice.id, movies[0].id, datetime(2024, 6, 1), rating=9)
        assert created is False
        assert again.id == first.id
        assert again.rewatch_count == 1
        assert again.rating == 9
        assert again.watched_at.month == 6

    def test_rewatch_keeps_rating_when_not_given(self, service, alice, movies):
        service.add_entry(alice.id, movies[0].id, datetime(2024, 3, 1), rating=6)
        again, _ = service.add_entry(alice.id, movies[0].id, datetime(2024, 4, 1))
        assert again.rating == 6

    @pytest.mark.parametrize("rating", [0, 11])
    def test_rejects_out_of_range_rating(self, service, alice, movies, rating):
        with pytest.raises(InvalidInputException):
            service.add_entry(alice.id, movies[0].id, datetime(2024, 3, 1), rating=rating)

    def test_requires_watched_date(self, service, alice, movies):
        with pytest.raises(InvalidInputException):
            service.add_entry(alice.id, movies[0].id, None)

    def test_unknown_movie(self, service, alice, movies):
        with pytest.raises(EntryNotFoundException):
            service.add_entry(alice.id, 9999, datetime(2024, 3, 1))


class TestUpdateAndDelete:
    def test_update_rating_and_notes(self, service, alice, movies):
        entry, _ = service.add_entry(alice.id, movies[0].id, datetime(2024, 3, 1))
        updated = service.update_entry(alice.id, entry.id, {"rating": 10, "notes": "rewatched"})
        assert (updated.rating, updated.notes) == (10, "rewatched")

    def test_update_can_clear_rating(self, service, alice, movies):
        entry, _ = service.add_entry(alice.id, movies[0].id, datetime(2024, 3, 1), rating=4)
        updated = service.update_entry(alice.id, entry.id, {"rating": None})
        assert updated.rating is None

    def test_update_rejects_bad_rating(self, service, alice, movies):
        entry, _ = service.add_entry(alice.id, movies[0].id, datetime(2024, 3, 1))
        with pytest.raises(InvalidInputException):
            service.update_entry(alice.id, entry.id, {"rating": 11})

    def test_update_foreign_entry(self, service, alice, bob, movies):
        entry, _ = service.add_entry(alice.id, movies[0].id, datetime(2024, 3, 1))
        with pytest.raises(AccessDeniedException):
            service.update_entry(bob.id, entry.id, {"notes": "mine now"})

    def test_delete_missing(self, service, alice):
        with pytest.raises(EntryNotFoundException):
            service.remove_entry(alice.id, 777)


class TestListing:
    @pytest.fixture
    def history(self, service, alice, movies):
        service.add_entry(alice.id, movies[0].id, datetime(2023, 5, 1), rating=9, notes="dream levels")
        service.add_entry(alice.id, movies[1].id, datetime(2024, 1, 15), rating=7)
        service.add_entry(alice.id, movies[2].id, datetime(2024, 8, 20))
        service.add_entry(alice.id, movies[3].id, datetime(2024, 12, 31, 23, 0), rating=10)

    def test_default_sort_newest_first(self, service, alice, movies, history):
        items, total, _, _ = service.list_entries(alice.id)
        assert total == 4
        assert items[0].movie_id == movies[3].id

    def test_year_filter(self, service, alice, history):
        _, total, _, _ = service.list_entries(alice.id, year=2024)
        assert total == 3

    @pytest.mark.parametrize("year", [0, -5, 9999])
    def test_year_out_of_range(self, service, alice, year):
        with pytest.raises(InvalidInputException) as exc:
            service.list_entries(alice.id, year=year)
        assert exc.value.message == "Year must be between 1 and 9998"

    def test_year_bounds_accepted(self, service, alice, history):
        assert service.list_entries(alice.id, year=1)[1] == 0
        assert service.list_entries(alice.id, year=9998)[1] == 0

    def test_rating_filter(self, service, alice, movies, history):
        items, total, _, _ = service.list_entries(alice.id, rating=7)
        assert total == 1
        assert items[0].movie_id == movies[1].id

    def test_unrated_sorts_lowest(self, service, alice, movies, history):
        items, _, _, _ = service.list_entries(alice.id, sort_by="rating", sort_order="asc")
        assert items[0].movie_id == movies[2].id
        assert items[-1].rating == 10

    def test_search_matches_notes(self, service, alice, movies, history):
        items, total, _, _ = service.list_entries(alice.id, search="DREAM")
        assert total == 1
        assert items[0].movie_id == movies[0].id

    def test_bad_sort_order(self, service, alice):
        with pytest.raises(InvalidInputException):
            service.list_entries(alice.id, sort_order="sideways")


class TestStats:
    def test_stats(self, service, db_session, alice, movies):
        service.add_entry(alice.id, movies[0].id, datetime(2024, 2, 1), rating=8)
        service.add_entry(alice.id, movies[3].id, datetime(2024, 2, 10), rating=6)
        service.add_entry(alice.id, movies[0].id, datetime(2024, 3, 1))
        service.add_entry(alice.id, movies[1].id, datetime(2023, 7, 1))

        stats = service.history_repo.get_stats(alice.id, now=datetime(2024, 3, 15))
        assert stats["total_watched"] == 3
        assert stats["rated_count"] == 2
        assert stats["average_rating"] == 7
        assert stats["media_type_count"] == 2
        assert stats["total_rewatches"] == 1
        assert stats["this_year"] == 2
        assert stats["this_month"] == 1
