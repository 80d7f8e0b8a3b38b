import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.orm import Session

from cinelog.core.enums import SortOrder, WatchHistorySortField, SortHelper
from cinelog.core.exceptions import EntryNotFoundException, InvalidInputException
from cinelog.core.ownership import load_owned
from cinelog.models.watch_history import WatchHistoryEntry
from cinelog.repositories.movie_repository import MovieRepository
from cinelog.repositories.watch_history_repository import WatchHistoryRepository
from cinelog.services.watchlist_service import resolve_page

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 10
MIN_YEAR = 1
MAX_YEAR = 9998


def validate_rating(rating: Any) -> Optional[int]:
    """None passes through; anything else must be an int in [1, 10]"""
    if rating is None:
        return None
    if not isinstance(rating, int) or isinstance(rating, bool) or not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidInputException(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
    return rating


def validate_year(year: Optional[int]) -> Optional[int]:
    """Calendar year filter; the upper bound leaves room for the exclusive end of the range"""
    if year is not None and not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidInputException(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
    return year


class WatchHistoryService:
    """Watch history use cases"""

    def __init__(self, db: Session):
        self.db = db
        self.history_repo = WatchHistoryRepository(db)
        self.movie_repo = MovieRepository(db)

    def add_entry(
        self,
        user_id: int,
        movie_id: int,
        watched_at: Optional[datetime],
        rating: Any = None,
        notes: Optional[str] = None,
    ) -> Tuple[WatchHistoryEntry, bool]:
        """Mark a title as watched. Returns (entry, created)."""
        if watched_at is None:
            raise InvalidInputException("Movie ID and watched date are required")
        rating = validate_rating(rating)
        if not self.movie_repo.get(movie_id):
            raise EntryNotFoundException("Movie not found")
        return self.history_repo.add_entry(user_id, movie_id, watched_at, rating, notes)

    def get_entry(self, user_id: int, entry_id: int) -> WatchHistoryEntry:
        return load_owned(entry_id, user_id, self.history_repo.get_entry_by_id)

    def list_entries(
        self,
        user_id: int,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
        rating: Optional[int] = None,
        year: Optional[int] = None,
        sort_by: str = WatchHistorySortField.WATCHED_AT.value,
        sort_order: Any = SortOrder.DESC,
    ) -> Tuple[List[WatchHistoryEntry], int, int, int]:
        """Returns (items, total, page, limit)"""
        page, limit, offset = resolve_page(page, limit)

        if search and search.strip():
            items, total = self.history_repo.search_for_user(user_id, search.strip(), limit, offset)
            return items, total, page, limit

        try:
            sort_field = SortHelper.parse_history_field(sort_by)
        except ValueError:
            raise InvalidInputException(f"sortBy must be one of: {SortHelper.allowed(WatchHistorySortField)}")
        try:
            order = SortOrder(sort_order)
        except ValueError:
            raise InvalidInputException("sortOrder must be asc or desc")

        items, total = self.history_repo.list_for_user(
            user_id,
            limit=limit,
            offset=offset,
            rating=validate_rating(rating),
            year=validate_year(year),
            sort_by=sort_field,
            sort_order=order,
        )
        return items, total, page, limit

    def update_entry(self, user_id: int, entry_id: int, fields: Dict[str, Any]) -> WatchHistoryEntry:
        """Edit rating / notes / watched date of an owned entry"""
        if "rating" in fields:
            validate_rating(fields["rating"])
        if "watched_at" in fields and fields["watched_at"] is None:
            raise InvalidInputException("Watched date cannot be empty")

        entry = self.get_entry(user_id, entry_id)
        try:
            updated = self.history_repo.update_entry(entry.id, fields)
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Watch history entry {entry.id} updated ({', '.join(sorted(fields)) or 'no changes'})")
        return updated

    def remove_entry(self, user_id: int, entry_id: int) -> None:
        entry = self.get_entry(user_id, entry_id)
        self.history_repo.remove_entry(entry.id)

    def get_stats(self, user_id: int) -> Dict[str, Any]:
        return self.history_repo.get_stats(user_id)
