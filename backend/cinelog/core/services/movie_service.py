from typing import Dict, Optional
from ..interfaces import CatalogServiceInterface, TMDBResponse, TMDBClientInterface
from ..cache import CacheService

CACHE_TTL_24H = 24 * 60 * 60

class MovieCatalogService(CatalogServiceInterface):
    """Service class for movie-related TMDB operations"""

    media_type = "movie"

    def __init__(self, client: TMDBClientInterface, cache: Optional[CacheService] = None):
        self.client = client
        self.cache = cache or CacheService()

    def get_details(self, tmdb_id: int) -> TMDBResponse:
        """Get movie details by ID"""
        cache_key = f"tmdb:movie:{tmdb_id}:details"
        cached = self.cache.get_json(cache_key)
        if cached is not None:
            return TMDBResponse(cached, 200, True)
        resp = self.client.make_request(f"movie/{tmdb_id}")
        if resp.success:
            self.cache.set_json(cache_key, resp.data, CACHE_TTL_24H)
        return resp

    def search(self, query: str, page: int = 1) -> TMDBResponse:
        """Search movies by query"""
        params = {"query": query, "page": page}
        return self.client.make_request("search/movie", params)

    def to_movie_fields(self, data: Dict) -> Dict:
        genres = data.get("genres")
        genre_ids = [g["id"] for g in genres] if genres else data.get("genre_ids")
        return {
            "title": data.get("title") or data.get("original_title") or "Untitled",
            "overview": data.get("overview"),
            "release_date": data.get("release_date") or None,
            "poster_path": data.get("poster_path"),
            "backdrop_path": data.get("backdrop_path"),
            "vote_average": data.get("vote_average"),
            "vote_count": data.get("vote_count"),
            "genre_ids": genre_ids,
        }
