from cinelog.db import Base
from .movie import Movie
from .user import User
from .watchlist import WatchlistEntry
from .watch_history import WatchHistoryEntry

__all__ = ['Base', 'Movie', 'User', 'WatchlistEntry', 'WatchHistoryEntry']
