from sqlalchemy import Column, Integer, String, Float, Text, JSON, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from cinelog.db import Base

class Movie(Base):
    """Local copy of a TMDB title, synced on demand"""
    __tablename__ = "movies"
    __table_args__ = (
        UniqueConstraint("tmdb_id", "media_type", name="uq_movie_tmdb_media"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tmdb_id = Column(Integer, index=True, nullable=False)
    media_type = Column(String(20), nullable=False)  # "movie" or "tv"
    title = Column(String(500), index=True, nullable=False)
    overview = Column(Text, nullable=True)
    release_date = Column(String(20), nullable=True)  # YYYY-MM-DD
    poster_path = Column(String(500), nullable=True)
    backdrop_path = Column(String(500), nullable=True)
    vote_average = Column(Float, nullable=True)
    vote_count = Column(Integer, nullable=True)
    genre_ids = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
