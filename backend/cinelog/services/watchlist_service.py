import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple
from sqlalchemy.orm import Session

from cinelog.core.config import get_settings
from cinelog.core.enums import Priority, SortOrder, WatchlistSortField, SortHelper
from cinelog.core.exceptions import (
    EntryNotFoundException, InvalidInputException, ValidationException
)
from cinelog.core.ownership import load_owned, ensure_all_owned
from cinelog.models.watchlist import WatchlistEntry
from cinelog.repositories.movie_repository import MovieRepository
from cinelog.repositories.watchlist_repository import WatchlistRepository

logger = logging.getLogger(__name__)

PRIORITY_ERROR = "Priority must be low, medium, or high"


def parse_priority(value: Any) -> Priority:
    """Coerce a raw value to Priority or raise ValidationException"""
    if isinstance(value, Priority):
        return value
    try:
        return Priority(value)
    except ValueError:
        raise ValidationException(PRIORITY_ERROR)


def resolve_page(page: Optional[int], limit: Optional[int]) -> Tuple[int, int, int]:
    """Return (page, limit, offset) with defaults and the configured cap applied"""
    settings = get_settings()
    page = 1 if page is None else page
    limit = settings.DEFAULT_PAGE_SIZE if limit is None else limit
    if page < 1:
        raise InvalidInputException("Page must be a positive integer")
    if limit < 1:
        raise InvalidInputException("Limit must be a positive integer")
    limit = min(limit, settings.MAX_PAGE_SIZE)
    return page, limit, (page - 1) * limit


class WatchlistService:
    """Watchlist use cases: ownership checks, validation and bulk operations"""

    def __init__(self, db: Session):
        self.db = db
        self.watchlist_repo = WatchlistRepository(db)
        self.movie_repo = MovieRepository(db)

    def add_entry(self, user_id: int, movie_id: int, priority: Any = None) -> WatchlistEntry:
        priority = parse_priority(priority) if priority is not None else Priority.MEDIUM
        if not self.movie_repo.get(movie_id):
            raise EntryNotFoundException("Movie not found")
        return self.watchlist_repo.add_entry(user_id, movie_id, priority)

    def get_entry(self, user_id: int, entry_id: int) -> WatchlistEntry:
        return load_owned(entry_id, user_id, self.watchlist_repo.get_entry_by_id)

    def get_movie_status(self, user_id: int, movie_id: int) -> Optional[WatchlistEntry]:
        return self.watchlist_repo.get_by_movie(user_id, movie_id)

    def list_entries(
        self,
        user_id: int,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        search: Optional[str] = None,
        priority: Any = None,
        sort_by: str = WatchlistSortField.ADDED_AT.value,
        sort_order: Any = SortOrder.DESC,
    ) -> Tuple[List[WatchlistEntry], int, int, int]:
        """Returns (items, total, page, limit)"""
        page, limit, offset = resolve_page(page, limit)

        if search and search.strip():
            items, total = self.watchlist_repo.search_for_user(user_id, search.strip(), limit, offset)
            return items, total, page, limit

        try:
            sort_field = SortHelper.parse_watchlist_field(sort_by)
        except ValueError:
            raise InvalidInputException(f"sortBy must be one of: {SortHelper.allowed(WatchlistSortField)}")
        try:
            order = SortOrder(sort_order)
        except ValueError:
            raise InvalidInputException("sortOrder must be asc or desc")

        items, total = self.watchlist_repo.list_for_user(
            user_id,
            limit=limit,
            offset=offset,
            priority=parse_priority(priority) if priority else None,
            sort_by=sort_field,
            sort_order=order,
        )
        return items, total, page, limit

    def update_priority(self, user_id: int, entry_id: int, priority: Any) -> WatchlistEntry:
        priority = parse_priority(priority)
        entry = self.get_entry(user_id, entry_id)
        logger.info(f"Watchlist entry {entry.id} priority -> {priority.value}")
        return self.watchlist_repo.update_priority(entry.id, priority)

    def remove_entry(self, user_id: int, entry_id: int) -> None:
        entry = self.get_entry(user_id, entry_id)
        self.watchlist_repo.remove_entry(entry.id)

    def get_stats(self, user_id: int) -> Dict[str, Any]:
        return self.watchlist_repo.get_stats(user_id)

    def bulk_update_priorities(self, user_id: int, updates: Iterable[Any]) -> List[WatchlistEntry]:
        """Apply all priority updates in one transaction, or none of them.

        Each update is a mapping or object with ``id`` and ``priority``.
        """
        parsed: List[Tuple[int, Priority]] = []
        for update in updates:
            entry_id = update["id"] if isinstance(update, dict) else update.id
            raw_priority = update["priority"] if isinstance(update, dict) else update.priority
            if not isinstance(entry_id, int) or isinstance(entry_id, bool):
                raise InvalidInputException("Each update must have a numeric id")
            parsed.append((entry_id, parse_priority(raw_priority)))

        if not parsed:
            raise InvalidInputException("Updates array cannot be empty")

        ids = [entry_id for entry_id, _ in parsed]
        if len(set(ids)) != len(ids):
            raise InvalidInputException("Duplicate ids are not allowed in updates")

        entries = ensure_all_owned(
            ids, user_id, self.watchlist_repo.get_many,
            not_found_message="Watchlist entry not found",
        )

        try:
            for entry, (_, priority) in zip(entries, parsed):
                self.watchlist_repo.update_priority(entry.id, priority, commit=False)
            self.db.commit()
        except Exception as e:
            logger.error(f"Bulk priority update failed for user {user_id}: {str(e)}")
            self.db.rollback()
            raise

        for entry in entries:
            self.db.refresh(entry)
        logger.info(f"Bulk priority update applied to {len(entries)} entries for user {user_id}")
        return entries

    def reorder_watchlist(self, user_id: int, ordered_ids: List[Any]) -> List[WatchlistEntry]:
        """Move the listed entries to the front, in the given order.

        Listed entries get positions 1..k; the user's other entries keep their
        relative order after them. Any unknown, foreign or repeated id rejects
        the whole request.
        """
        if not isinstance(ordered_ids, list) or not ordered_ids:
            raise InvalidInputException("orderedIds array cannot be empty")
        if any(not isinstance(i, int) or isinstance(i, bool) for i in ordered_ids):
            raise InvalidInputException("All IDs in orderedIds must be valid numbers")
        if len(set(ordered_ids)) != len(ordered_ids):
            raise InvalidInputException("orderedIds must not contain duplicates")

        ensure_all_owned(
            ordered_ids, user_id, self.watchlist_repo.get_many,
            not_found_message="Watchlist entry not found",
        )

        current = self.watchlist_repo.all_for_user(user_id)
        by_id = {entry.id: entry for entry in current}
        listed = set(ordered_ids)
        new_order = [by_id[i] for i in ordered_ids] + [e for e in current if e.id not in listed]

        try:
            for position, entry in enumerate(new_order, start=1):
                entry.position = position
            self.db.commit()
        except Exception as e:
            logger.error(f"Reorder failed for user {user_id}: {str(e)}")
            self.db.rollback()
            raise

        logger.info(f"Watchlist reordered for user {user_id} ({len(ordered_ids)} moved)")
        return self.watchlist_repo.all_for_user(user_id)
