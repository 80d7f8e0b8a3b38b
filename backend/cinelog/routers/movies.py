from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from cinelog.db import get_db
from cinelog.core.auth import get_current_user
from cinelog.core.enums import MediaType
from cinelog.core.exceptions import BaseAppException
from cinelog.schemas.movie import CatalogSearchResponse, MovieSyncRequest, MovieSyncResponse
from cinelog.services.movie_service import MovieService

router = APIRouter(prefix="/movies", tags=["movies"])

def handle_exception(e: Exception) -> HTTPException:
    """Handle exceptions and convert to HTTPException"""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, BaseAppException):
        return HTTPException(
            status_code=e.status_code,
            detail=e.message
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An internal server error occurred"
    )

def get_movie_service(db: Session = Depends(get_db)) -> MovieService:
    return MovieService(db)

@router.post("/sync", response_model=MovieSyncResponse)
def sync_movie(
    payload: MovieSyncRequest,
    current_user: int = Depends(get_current_user),
    movie_service: MovieService = Depends(get_movie_service)
):
    """Fetch a TMDB title and store it locally so it can be listed"""
    try:
        movie = movie_service.sync(payload.tmdb_id, payload.media_type)
        return MovieSyncResponse(movie_id=movie.id, message="Movie synced successfully")
    except Exception as e:
        raise handle_exception(e)

@router.get("/search", response_model=CatalogSearchResponse)
def search_catalog(
    query: str = Query(..., description="Search text (2+ characters)"),
    page: int = Query(1, ge=1),
    media_type: MediaType = Query(MediaType.MOVIE, alias="mediaType"),
    current_user: int = Depends(get_current_user),
    movie_service: MovieService = Depends(get_movie_service)
):
    """Search TMDB for movies or TV shows"""
    try:
        return movie_service.search(query, page, media_type)
    except Exception as e:
        raise handle_exception(e)
