import logging
from typing import Any, Callable, Dict
from sqlalchemy.orm import Session

from cinelog.core.config import get_settings
from cinelog.core.enums import MediaType
from cinelog.core.exceptions import (
    EntryNotFoundException, InvalidInputException, UpstreamServiceException
)
from cinelog.core.interfaces import CatalogServiceInterface, TMDBError
from cinelog.core.tmdb_service import TMDBServiceFactory
from cinelog.models.movie import Movie
from cinelog.repositories.movie_repository import MovieRepository

logger = logging.getLogger(__name__)


class MovieService:
    """Service for syncing TMDB titles into local storage and searching the catalog"""

    def __init__(
        self,
        db: Session,
        catalog_factory: Callable[[str], CatalogServiceInterface] = TMDBServiceFactory.create_catalog,
    ):
        self.db = db
        self.settings = get_settings()
        self.movie_repo = MovieRepository(db)
        self.catalog_factory = catalog_factory

    def _catalog(self, media_type: Any) -> CatalogServiceInterface:
        try:
            media_type = MediaType(media_type)
        except ValueError:
            raise InvalidInputException('Media type must be either "movie" or "tv"')
        if not self.settings.TMDB_API_KEY:
            raise UpstreamServiceException("TMDB API key not configured")
        return self.catalog_factory(media_type.value)

    def sync(self, tmdb_id: int, media_type: Any) -> Movie:
        """Fetch a title from TMDB and upsert its local row"""
        catalog = self._catalog(media_type)
        try:
            response = catalog.get_details(tmdb_id)
        except TMDBError as e:
            logger.error(f"Error syncing {catalog.media_type} {tmdb_id} with TMDB: {e.message}")
            raise UpstreamServiceException("Failed to sync movie data with TMDB")

        if response.status_code == 404:
            raise EntryNotFoundException("Title not found in TMDB")
        if not response.success:
            raise UpstreamServiceException("Failed to sync movie data with TMDB")

        try:
            movie = self.movie_repo.upsert(tmdb_id, catalog.media_type, catalog.to_movie_fields(response.data))
        except Exception as e:
            logger.error(f"Error storing synced title {tmdb_id}: {str(e)}")
            self.db.rollback()
            raise

        logger.info(f"Synced {catalog.media_type} {tmdb_id} as local movie {movie.id}")
        return movie

    def search(self, query: str, page: int = 1, media_type: Any = MediaType.MOVIE) -> Dict[str, Any]:
        """Search TMDB for movies or TV shows"""
        if not query or len(query.strip()) < 2:
            raise InvalidInputException("Search query must be at least 2 characters")

        catalog = self._catalog(media_type)
        try:
            response = catalog.search(query.strip(), page)
        except TMDBError as e:
            logger.error(f"Error searching TMDB: {e.message}")
            raise UpstreamServiceException("Failed to search TMDB")

        if not response.success:
            raise UpstreamServiceException("Failed to search TMDB")

        data = response.data
        return {
            "page": data.get("page", page),
            "total_pages": data.get("total_pages", 0),
            "total_results": data.get("total_results", 0),
            "results": data.get("results", []),
        }
