from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from cinelog.db import Base

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    watchlist = relationship("WatchlistEntry", back_populates="user", cascade="all, delete-orphan")
    watch_history = relationship("WatchHistoryEntry", back_populates="user", cascade="all, delete-orphan")
