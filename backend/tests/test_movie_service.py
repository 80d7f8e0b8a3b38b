from unittest.mock import MagicMock

import pytest

from cinelog.core.config import Settings
from cinelog.core.exceptions import EntryNotFoundException, InvalidInputException, UpstreamServiceException
from cinelog.core.interfaces import TMDBError, TMDBResponse
from cinelog.core.services import MovieCatalogService, TVCatalogService
from cinelog.models import Movie
from cinelog.services.movie_service import MovieService

INCEPTION = {
    "id": 27205,
    "title": "Inception",
    "overview": "A thief who steals corporate secrets...",
    "release_date": "2010-07-15",
    "poster_path": "/inception.jpg",
    "vote_average": 8.4,
    "vote_count": 35000,
    "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
}


def make_service(db_session, catalog):
    service = MovieService(db_session, catalog_factory=lambda media_type: catalog)
    service.settings = Settings(TMDB_API_KEY="test-key")
    return service


def fake_catalog(media_type="movie", details=None, search=None):
    real = MovieCatalogService if media_type == "movie" else TVCatalogService
    catalog = MagicMock()
    catalog.media_type = media_type
    catalog.to_movie_fields.side_effect = real(client=MagicMock(), cache=MagicMock()).to_movie_fields
    if details is not None:
        catalog.get_details.return_value = details
    if search is not None:
        catalog.search.return_value = search
    return catalog


class TestSync:
    def test_creates_local_row(self, db_session):
        catalog = fake_catalog(details=TMDBResponse(INCEPTION, 200, True))
        movie = make_service(db_session, catalog).sync(27205, "movie")

        assert movie.id is not None
        assert movie.title == "Inception"
        assert movie.genre_ids == [28, 878]
        catalog.get_details.assert_called_once_with(27205)

    def test_resync_updates_same_row(self, db_session):
        catalog = fake_catalog(details=TMDBResponse(INCEPTION, 200, True))
        service = make_service(db_session, catalog)
        first = service.sync(27205, "movie")

        catalog.get_details.return_value = TMDBResponse({**INCEPTION, "vote_average": 9.0}, 200, True)
        second = service.sync(27205, "movie")

        assert first.id == second.id
        assert second.vote_average == 9.0
        assert db_session.query(Movie).count() == 1

    def test_tv_maps_name(self, db_session):
        show = {"id": 1396, "name": "Breaking Bad", "first_air_date": "2008-01-20"}
        catalog = fake_catalog("tv", details=TMDBResponse(show, 200, True))
        movie = make_service(db_session, catalog).sync(1396, "tv")
        assert (movie.title, movie.release_date, movie.media_type) == ("Breaking Bad", "2008-01-20", "tv")

    def test_not_found_upstream(self, db_session):
        catalog = fake_catalog(details=TMDBResponse({}, 404, False))
        with pytest.raises(EntryNotFoundException):
            make_service(db_session, catalog).sync(1, "movie")

    def test_transport_error(self, db_session):
        catalog = fake_catalog()
        catalog.get_details.side_effect = TMDBError("Request failed: timeout")
        with pytest.raises(UpstreamServiceException):
            make_service(db_session, catalog).sync(1, "movie")

    def test_invalid_media_type(self, db_session):
        with pytest.raises(InvalidInputException):
            make_service(db_session, fake_catalog()).sync(1, "podcast")

    def test_missing_api_key(self, db_session):
        service = make_service(db_session, fake_catalog())
        service.settings = Settings(TMDB_API_KEY="")
        with pytest.raises(UpstreamServiceException):
            service.sync(1, "movie")


class TestSearch:
    def test_short_query(self, db_session):
        with pytest.raises(InvalidInputException):
            make_service(db_session, fake_catalog()).search("a")

    def test_returns_page(self, db_session):
        payload = {"page": 1, "total_pages": 3, "total_results": 55, "results": [{"id": 27205}]}
        catalog = fake_catalog(search=TMDBResponse(payload, 200, True))
        result = make_service(db_session, catalog).search("  inception ")
        assert result["total_results"] == 55
        catalog.search.assert_called_once_with("inception", 1)
