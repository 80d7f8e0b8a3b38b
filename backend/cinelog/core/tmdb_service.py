import logging
from typing import Optional
from .config import get_settings
from .interfaces import TMDBConfig, CatalogServiceInterface
from .tmdb_client import TMDBClient
from .services import MovieCatalogService, TVCatalogService

logger = logging.getLogger(__name__)

class TMDBServiceFactory:
    """Factory class for creating TMDB services"""

    @staticmethod
    def create_config(api_key: Optional[str] = None) -> TMDBConfig:
        settings = get_settings()
        return TMDBConfig(
            api_key=api_key if api_key is not None else (settings.TMDB_API_KEY or ""),
            base_url=settings.TMDB_BASE_URL,
            language=settings.TMDB_LANGUAGE,
            timeout=settings.TMDB_TIMEOUT,
        )

    @staticmethod
    def create_client(api_key: Optional[str] = None) -> TMDBClient:
        return TMDBClient(TMDBServiceFactory.create_config(api_key))

    @staticmethod
    def create_movie_service(api_key: Optional[str] = None) -> MovieCatalogService:
        """Create a new movie service instance"""
        return MovieCatalogService(TMDBServiceFactory.create_client(api_key))

    @staticmethod
    def create_tv_service(api_key: Optional[str] = None) -> TVCatalogService:
        """Create a new TV service instance"""
        return TVCatalogService(TMDBServiceFactory.create_client(api_key))

    @staticmethod
    def create_catalog(media_type: str, api_key: Optional[str] = None) -> CatalogServiceInterface:
        """Catalog service for 'movie' or 'tv'"""
        if media_type == "tv":
            return TMDBServiceFactory.create_tv_service(api_key)
        return TMDBServiceFactory.create_movie_service(api_key)
