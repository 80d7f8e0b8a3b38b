import logging
from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy import func, case, asc, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, contains_eager

from cinelog.repositories.base_repository import BaseRepository
from cinelog.models.watchlist import WatchlistEntry
from cinelog.models.movie import Movie
from cinelog.core.enums import Priority, PRIORITY_RANKS, SortOrder, WatchlistSortField
from cinelog.core.exceptions import EntryNotFoundException, DuplicateEntryException

logger = logging.getLogger(__name__)


def like_pattern(text: str) -> str:
    """Build a substring LIKE pattern with wildcards in ``text`` escaped"""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped.lower()}%"


def direction(column, sort_order: SortOrder):
    return asc(column) if sort_order == SortOrder.ASC else desc(column)


class WatchlistRepository(BaseRepository[WatchlistEntry]):
    """Repository for watchlist entries"""

    def __init__(self, db: Session):
        super().__init__(WatchlistEntry, db)

    def _base_query(self, user_id: int):
        return (
            self.db.query(WatchlistEntry)
            .outerjoin(Movie, WatchlistEntry.movie_id == Movie.id)
            .options(contains_eager(WatchlistEntry.movie))
            .filter(WatchlistEntry.user_id == user_id)
        )

    def get_entry_by_id(self, entry_id: int) -> WatchlistEntry:
        """Get entry or raise EntryNotFoundException"""
        entry = self.get(entry_id)
        if not entry:
            raise EntryNotFoundException("Watchlist entry not found")
        return entry

    def get_by_movie(self, user_id: int, movie_id: int) -> Optional[WatchlistEntry]:
        """Get user's entry for a specific movie"""
        return self.filter_one_by(user_id=user_id, movie_id=movie_id)

    def next_position(self, user_id: int) -> int:
        current = (
            self.db.query(func.max(WatchlistEntry.position))
            .filter(WatchlistEntry.user_id == user_id)
            .scalar()
        )
        return int(current or 0) + 1

    def add_entry(self, user_id: int, movie_id: int, priority: Priority = Priority.MEDIUM) -> WatchlistEntry:
        """Add a movie at the end of the user's watchlist"""
        if self.get_by_movie(user_id, movie_id):
            raise DuplicateEntryException("Movie is already in your watchlist")

        try:
            entry = self.create({
                "user_id": user_id,
                "movie_id": movie_id,
                "priority": Priority(priority).value,
                "position": self.next_position(user_id),
            })
        except IntegrityError:
            # Concurrent insert of the same (user, movie) pair
            self.db.rollback()
            raise DuplicateEntryException("Movie is already in your watchlist")

        logger.info(f"Watchlist entry {entry.id} created for user {user_id} (movie {movie_id})")
        return entry

    def list_for_user(
        self,
        user_id: int,
        limit: int = 20,
        offset: int = 0,
        priority: Optional[Priority] = None,
        sort_by: WatchlistSortField = WatchlistSortField.ADDED_AT,
        sort_order: SortOrder = SortOrder.DESC,
    ) -> Tuple[List[WatchlistEntry], int]:
        """Page through a user's watchlist with optional priority filter"""
        query = self._base_query(user_id)
        count_query = self.count_query().filter(WatchlistEntry.user_id == user_id)

        if priority:
            query = query.filter(WatchlistEntry.priority == Priority(priority).value)
            count_query = count_query.filter(WatchlistEntry.priority == Priority(priority).value)

        if sort_by == WatchlistSortField.TITLE:
            sort_column = Movie.title
        elif sort_by == WatchlistSortField.PRIORITY:
            sort_column = case(PRIORITY_RANKS, value=WatchlistEntry.priority, else_=0)
        elif sort_by == WatchlistSortField.POSITION:
            sort_column = WatchlistEntry.position
        else:
            sort_column = WatchlistEntry.added_at

        query = query.order_by(direction(sort_column, sort_order), direction(WatchlistEntry.id, sort_order))
        return self.paginate(query, count_query, limit, offset)

    def search_for_user(self, user_id: int, query_text: str, limit: int = 20, offset: int = 0) -> Tuple[List[WatchlistEntry], int]:
        """Case-insensitive title search within a user's watchlist"""
        pattern = like_pattern(query_text)
        match = func.lower(Movie.title).like(pattern, escape="\\")

        query = (
            self._base_query(user_id)
            .filter(match)
            .order_by(desc(WatchlistEntry.added_at), desc(WatchlistEntry.id))
        )
        count_query = (
            self.count_query()
            .select_from(WatchlistEntry)
            .outerjoin(Movie, WatchlistEntry.movie_id == Movie.id)
            .filter(WatchlistEntry.user_id == user_id, match)
        )
        return self.paginate(query, count_query, limit, offset)

    def all_for_user(self, user_id: int) -> List[WatchlistEntry]:
        """Whole watchlist in custom (position) order"""
        return (
            self._base_query(user_id)
            .order_by(asc(WatchlistEntry.position), asc(WatchlistEntry.id))
            .all()
        )

    def update_priority(self, entry_id: int, priority: Priority, commit: bool = True) -> WatchlistEntry:
        """Change priority only; position is left untouched"""
        entry = self.get_entry_by_id(entry_id)
        return self.update(entry, {"priority": Priority(priority).value}, commit=commit)

    def remove_entry(self, entry_id: int) -> None:
        """Hard delete; remaining positions are not renumbered"""
        if not self.delete(entry_id):
            raise EntryNotFoundException("Watchlist entry not found")
        logger.info(f"Watchlist entry {entry_id} removed")

    def get_stats(self, user_id: int) -> Dict[str, Any]:
        """Totals and per-priority breakdown"""
        row = (
            self.db.query(
                func.count(WatchlistEntry.id),
                func.count(case((WatchlistEntry.priority == Priority.LOW.value, 1))),
                func.count(case((WatchlistEntry.priority == Priority.MEDIUM.value, 1))),
                func.count(case((WatchlistEntry.priority == Priority.HIGH.value, 1))),
            )
            .filter(WatchlistEntry.user_id == user_id)
            .one()
        )
        total, low, medium, high = (int(value or 0) for value in row)
        average = (low * 1 + medium * 2 + high * 3) / total if total else 0

        return {
            "total_items": total,
            "by_priority": {"low": low, "medium": medium, "high": high},
            "average_priority": round(average, 2),
        }
