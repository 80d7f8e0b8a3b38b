from abc import ABC, abstractmethod
from typing import Dict, Optional
from dataclasses import dataclass

@dataclass
class TMDBConfig:
    """Configuration class for TMDB API"""
    api_key: str
    base_url: str = "https://api.themoviedb.org/3"
    language: str = "en-US"
    timeout: int = 10

class TMDBResponse:
    """Response wrapper for TMDB API calls"""
    def __init__(self, data: Dict, status_code: int, success: bool):
        self.data = data
        self.status_code = status_code
        self.success = success

class TMDBError(Exception):
    """Custom exception for TMDB API errors"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)

class TMDBClientInterface(ABC):
    """Abstract interface for TMDB client"""

    @abstractmethod
    def make_request(self, endpoint: str, params: Dict = None, timeout: Optional[float] = None) -> TMDBResponse:
        pass

class CatalogServiceInterface(ABC):
    """Abstract interface for a TMDB media catalog (movies or TV)"""

    media_type: str

    @abstractmethod
    def get_details(self, tmdb_id: int) -> TMDBResponse:
        pass

    @abstractmethod
    def search(self, query: str, page: int = 1) -> TMDBResponse:
        pass

    @abstractmethod
    def to_movie_fields(self, data: Dict) -> Dict:
        """Map a TMDB details payload to local ``movies`` columns"""
        pass
