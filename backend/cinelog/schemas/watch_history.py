from datetime import datetime
from typing import Optional, List
from pydantic import Field
from cinelog.schemas.common import CamelModel, Pagination
from cinelog.schemas.movie import MovieSummary

class WatchHistoryCreate(CamelModel):
    movie_id: int = Field(..., gt=0)
    watched_at: datetime
    rating: Optional[int] = Field(None, description="Rating from 1 to 10")
    notes: Optional[str] = Field(None, max_length=5000)

class WatchHistoryUpdate(CamelModel):
    watched_at: Optional[datetime] = None
    rating: Optional[int] = Field(None, description="Rating from 1 to 10")
    notes: Optional[str] = Field(None, max_length=5000)

class WatchHistoryEntryResponse(CamelModel):
    id: int
    user_id: int
    movie_id: int
    watched_at: datetime
    rating: Optional[int] = None
    notes: Optional[str] = None
    rewatch_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    movie: Optional[MovieSummary] = None

class WatchHistoryPage(CamelModel):
    items: List[WatchHistoryEntryResponse]
    pagination: Pagination

class WatchHistoryStats(CamelModel):
    total_watched: int
    rated_count: int
    average_rating: float
    media_type_count: int
    total_rewatches: int
    this_year: int
    this_month: int
