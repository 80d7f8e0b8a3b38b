from .base_repository import BaseRepository
from .movie_repository import MovieRepository
from .watchlist_repository import WatchlistRepository
from .watch_history_repository import WatchHistoryRepository

__all__ = [
    "BaseRepository",
    "MovieRepository",
    "WatchlistRepository",
    "WatchHistoryRepository",
]
