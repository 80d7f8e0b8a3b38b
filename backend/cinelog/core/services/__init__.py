from .movie_service import MovieCatalogService
from .tv_service import TVCatalogService

__all__ = ["MovieCatalogService", "TVCatalogService"]
