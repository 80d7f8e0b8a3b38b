from sqlalchemy import Column, Integer, Text, ForeignKey, DateTime, UniqueConstraint, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from cinelog.db import Base

class WatchHistoryEntry(Base):
    __tablename__ = "watch_history"
    __table_args__ = (
        UniqueConstraint("user_id", "movie_id", name="uq_watch_history_user_movie"),
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 10)", name="ck_watch_history_rating"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    movie_id = Column(Integer, ForeignKey("movies.id"), nullable=False)
    watched_at = Column(DateTime(timezone=True), nullable=False)
    rating = Column(Integer, nullable=True)  # 1-10 scale
    notes = Column(Text, nullable=True)
    rewatch_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="watch_history")
    movie = relationship("Movie", lazy="joined")
