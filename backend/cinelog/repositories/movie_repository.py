from typing import Optional, Dict, Any
from sqlalchemy.orm import Session
from cinelog.repositories.base_repository import BaseRepository
from cinelog.models.movie import Movie

class MovieRepository(BaseRepository[Movie]):
    """Repository for locally synced catalog titles"""

    def __init__(self, db: Session):
        super().__init__(Movie, db)

    def get_by_tmdb_id(self, tmdb_id: int, media_type: str) -> Optional[Movie]:
        """Get movie by TMDB identifier"""
        return self.filter_one_by(tmdb_id=tmdb_id, media_type=media_type)

    def upsert(self, tmdb_id: int, media_type: str, fields: Dict[str, Any]) -> Movie:
        """Create the row for (tmdb_id, media_type) or refresh its metadata"""
        existing = self.get_by_tmdb_id(tmdb_id, media_type)
        if existing:
            return self.update(existing, fields)
        return self.create({"tmdb_id": tmdb_id, "media_type": media_type, **fields})
