from datetime import datetime
from typing import Optional, List
from pydantic import Field, StrictInt
from cinelog.core.enums import Priority
from cinelog.schemas.common import CamelModel, Pagination
from cinelog.schemas.movie import MovieSummary

class WatchlistCreate(CamelModel):
    movie_id: int = Field(..., gt=0, description="Local movie ID (see /movies/sync)")
    priority: Optional[str] = Field(None, description="low, medium or high (default medium)")

class WatchlistUpdate(CamelModel):
    priority: str

class WatchlistEntryResponse(CamelModel):
    id: int
    user_id: int
    movie_id: int
    priority: Priority
    position: int
    added_at: datetime
    movie: Optional[MovieSummary] = None

class WatchlistPage(CamelModel):
    items: List[WatchlistEntryResponse]
    pagination: Pagination

class ReorderRequest(CamelModel):
    ordered_ids: List[StrictInt]

class ReorderResponse(CamelModel):
    message: str
    items: List[WatchlistEntryResponse]

class BulkPriorityItem(CamelModel):
    id: StrictInt
    priority: str

class BulkPriorityRequest(CamelModel):
    updates: List[BulkPriorityItem]

class PriorityBreakdown(CamelModel):
    low: int
    medium: int
    high: int

class WatchlistStats(CamelModel):
    total_items: int
    by_priority: PriorityBreakdown
    average_priority: float

class WatchlistMovieStatus(CamelModel):
    in_watchlist: bool
    entry: Optional[WatchlistEntryResponse] = None
