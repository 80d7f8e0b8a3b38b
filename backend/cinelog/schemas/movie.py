from pydantic import Field
from typing import Optional, List, Dict, Any
from cinelog.core.enums import MediaType
from cinelog.schemas.common import CamelModel

class MovieSummary(CamelModel):
    """Movie fields embedded in list entries"""
    id: int
    tmdb_id: int
    title: str
    poster_path: Optional[str] = None
    release_date: Optional[str] = None
    media_type: str
    vote_average: Optional[float] = None

class MovieSyncRequest(CamelModel):
    tmdb_id: int = Field(..., gt=0, description="TMDB movie/show ID")
    media_type: MediaType = Field(..., description="'movie' or 'tv'")

class MovieSyncResponse(CamelModel):
    movie_id: int
    message: str

class CatalogSearchResponse(CamelModel):
    """Proxied TMDB search page"""
    page: int
    total_pages: int = 0
    total_results: int = 0
    results: List[Dict[str, Any]] = []
