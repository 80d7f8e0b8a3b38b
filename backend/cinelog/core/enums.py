from enum import Enum

class Priority(str, Enum):
    """Watchlist priority, ordered low < medium < high"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return PRIORITY_RANKS[self.value]

PRIORITY_RANKS = {
    Priority.LOW.value: 1,
    Priority.MEDIUM.value: 2,
    Priority.HIGH.value: 3,
}

class MediaType(str, Enum):
    MOVIE = "movie"
    TV = "tv"

class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

class WatchlistSortField(str, Enum):
    ADDED_AT = "addedAt"
    PRIORITY = "priority"
    TITLE = "title"
    POSITION = "position"

class WatchHistorySortField(str, Enum):
    WATCHED_AT = "watchedAt"
    RATING = "rating"
    TITLE = "title"

class HealthStatus(str, Enum):
    UP = "up"
    DEGRADED = "degraded"
    DOWN = "down"

class SortHelper:
    """Parses sortBy values, accepting legacy snake_case names"""

    # snake_case names sent by older clients
    _LEGACY_ALIASES = {
        "added_at": "addedAt",
        "watched_at": "watchedAt",
    }

    @staticmethod
    def parse_watchlist_field(value: str) -> WatchlistSortField:
        value = SortHelper._LEGACY_ALIASES.get(value, value)
        return WatchlistSortField(value)

    @staticmethod
    def parse_history_field(value: str) -> WatchHistorySortField:
        value = SortHelper._LEGACY_ALIASES.get(value, value)
        return WatchHistorySortField(value)

    @staticmethod
    def allowed(enum_cls) -> str:
        return ", ".join(member.value for member in enum_cls)
