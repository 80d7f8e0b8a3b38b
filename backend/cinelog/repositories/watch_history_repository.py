import logging
from datetime import datetime, timezone
from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy import func, case, desc, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, contains_eager

from cinelog.repositories.base_repository import BaseRepository
from cinelog.repositories.watchlist_repository import like_pattern, direction
from cinelog.models.watch_history import WatchHistoryEntry
from cinelog.models.movie import Movie
from cinelog.core.enums import SortOrder, WatchHistorySortField
from cinelog.core.exceptions import EntryNotFoundException, DuplicateEntryException

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("watched_at", "rating", "notes")


def year_bounds(year: int) -> Tuple[datetime, datetime]:
    """[start, end) of a calendar year"""
    return datetime(year, 1, 1), datetime(year + 1, 1, 1)


class WatchHistoryRepository(BaseRepository[WatchHistoryEntry]):
    """Repository for watch history entries"""

    def __init__(self, db: Session):
        super().__init__(WatchHistoryEntry, db)

    def _base_query(self, user_id: int):
        return (
            self.db.query(WatchHistoryEntry)
            .outerjoin(Movie, WatchHistoryEntry.movie_id == Movie.id)
            .options(contains_eager(WatchHistoryEntry.movie))
            .filter(WatchHistoryEntry.user_id == user_id)
        )

    def get_entry_by_id(self, entry_id: int) -> WatchHistoryEntry:
        """Get entry or raise EntryNotFoundException"""
        entry = self.get(entry_id)
        if not entry:
            raise EntryNotFoundException("Watch history entry not found")
        return entry

    def get_by_movie(self, user_id: int, movie_id: int) -> Optional[WatchHistoryEntry]:
        """Get user's history entry for a specific movie"""
        return self.filter_one_by(user_id=user_id, movie_id=movie_id)

    def add_entry(
        self,
        user_id: int,
        movie_id: int,
        watched_at: datetime,
        rating: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Tuple[WatchHistoryEntry, bool]:
        """Record a watch. Returns (entry, created).

        Watching a title that is already in the history bumps its rewatch
        counter instead of adding a second row.
        """
        existing = self.get_by_movie(user_id, movie_id)
        if existing:
            fields: Dict[str, Any] = {
                "watched_at": watched_at,
                "rewatch_count": (existing.rewatch_count or 0) + 1,
            }
            if rating is not None:
                fields["rating"] = rating
            if notes is not None:
                fields["notes"] = notes
            entry = self.update(existing, fields)
            logger.info(f"Watch history entry {entry.id} rewatched (count={entry.rewatch_count})")
            return entry, False

        try:
            entry = self.create({
                "user_id": user_id,
                "movie_id": movie_id,
                "watched_at": watched_at,
                "rating": rating,
                "notes": notes,
                "rewatch_count": 0,
            })
        except IntegrityError:
            self.db.rollback()
            raise DuplicateEntryException("Movie is already in your watch history")

        logger.info(f"Watch history entry {entry.id} created for user {user_id} (movie {movie_id})")
        return entry, True

    def list_for_user(
        self,
        user_id: int,
        limit: int = 20,
        offset: int = 0,
        rating: Optional[int] = None,
        year: Optional[int] = None,
        sort_by: WatchHistorySortField = WatchHistorySortField.WATCHED_AT,
        sort_order: SortOrder = SortOrder.DESC,
    ) -> Tuple[List[WatchHistoryEntry], int]:
        """Page through a user's watch history with rating/year filters"""
        conditions = []
        if rating is not None:
            conditions.append(WatchHistoryEntry.rating == rating)
        if year is not None:
            start, end = year_bounds(year)
            conditions.append(WatchHistoryEntry.watched_at >= start)
            conditions.append(WatchHistoryEntry.watched_at < end)

        query = self._base_query(user_id).filter(*conditions)
        count_query = self.count_query().filter(WatchHistoryEntry.user_id == user_id, *conditions)

        if sort_by == WatchHistorySortField.TITLE:
            sort_column = Movie.title
        elif sort_by == WatchHistorySortField.RATING:
            # unrated entries sort as the lowest rating
            sort_column = func.coalesce(WatchHistoryEntry.rating, 0)
        else:
            sort_column = WatchHistoryEntry.watched_at

        query = query.order_by(direction(sort_column, sort_order), direction(WatchHistoryEntry.id, sort_order))
        return self.paginate(query, count_query, limit, offset)

    def search_for_user(self, user_id: int, query_text: str, limit: int = 20, offset: int = 0) -> Tuple[List[WatchHistoryEntry], int]:
        """Case-insensitive search over title and notes"""
        pattern = like_pattern(query_text)
        match = or_(
            func.lower(Movie.title).like(pattern, escape="\\"),
            func.lower(WatchHistoryEntry.notes).like(pattern, escape="\\"),
        )

        query = (
            self._base_query(user_id)
            .filter(match)
            .order_by(desc(WatchHistoryEntry.watched_at), desc(WatchHistoryEntry.id))
        )
        count_query = (
            self.count_query()
            .select_from(WatchHistoryEntry)
            .outerjoin(Movie, WatchHistoryEntry.movie_id == Movie.id)
            .filter(WatchHistoryEntry.user_id == user_id, match)
        )
        return self.paginate(query, count_query, limit, offset)

    def update_entry(self, entry_id: int, fields: Dict[str, Any]) -> WatchHistoryEntry:
        """Update watched_at / rating / notes"""
        entry = self.get_entry_by_id(entry_id)
        changes = {key: value for key, value in fields.items() if key in UPDATABLE_FIELDS}
        return self.update(entry, changes)

    def remove_entry(self, entry_id: int) -> None:
        if not self.delete(entry_id):
            raise EntryNotFoundException("Watch history entry not found")
        logger.info(f"Watch history entry {entry_id} removed")

    def get_stats(self, user_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Aggregate counts, average rating and this year/month activity"""
        now = now or datetime.now(timezone.utc)
        start_of_year = datetime(now.year, 1, 1)
        start_of_month = datetime(now.year, now.month, 1)

        row = (
            self.db.query(
                func.count(WatchHistoryEntry.id),
                func.count(WatchHistoryEntry.rating),
                func.avg(WatchHistoryEntry.rating),
                func.count(func.distinct(Movie.media_type)),
                func.coalesce(func.sum(WatchHistoryEntry.rewatch_count), 0),
                func.count(case((WatchHistoryEntry.watched_at >= start_of_year, 1))),
                func.count(case((WatchHistoryEntry.watched_at >= start_of_month, 1))),
            )
            .select_from(WatchHistoryEntry)
            .outerjoin(Movie, WatchHistoryEntry.movie_id == Movie.id)
            .filter(WatchHistoryEntry.user_id == user_id)
            .one()
        )
        total, rated, average, media_types, rewatches, this_year, this_month = row

        return {
            "total_watched": int(total or 0),
            "rated_count": int(rated or 0),
            "average_rating": round(float(average), 2) if average is not None else 0,
            "media_type_count": int(media_types or 0),
            "total_rewatches": int(rewatches or 0),
            "this_year": int(this_year or 0),
            "this_month": int(this_month or 0),
        }
