from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from cinelog.db import get_db
from cinelog.core.auth import get_current_user
from cinelog.core.exceptions import BaseAppException
from cinelog.schemas.common import MessageResponse, Pagination
from cinelog.schemas.watch_history import (
    WatchHistoryCreate, WatchHistoryUpdate, WatchHistoryEntryResponse,
    WatchHistoryPage, WatchHistoryStats,
)
from cinelog.services.watch_history_service import WatchHistoryService

router = APIRouter(prefix="/watch-history", tags=["watch-history"])

def handle_exception(e: Exception) -> HTTPException:
    """Handle exceptions and convert to HTTPException"""
    if isinstance(e, HTTPException):
        return e
    if isinstance(e, BaseAppException):
        return HTTPException(
            status_code=e.status_code,
            detail=e.message
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An internal server error occurred"
    )

@router.get("", response_model=WatchHistoryPage)
def list_watch_history(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Matches title or notes"),
    rating: Optional[int] = Query(None, description="Exact rating filter"),
    year: Optional[int] = Query(None, description="Calendar year of watched date"),
    sort_by: str = Query("watchedAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    current_user: int = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the user's watch history"""
    try:
        items, total, page, limit = WatchHistoryService(db).list_entries(
            current_user, page=page, limit=limit, search=search,
            rating=rating, year=year, sort_by=sort_by, sort_order=sort_order,
        )
        return WatchHistoryPage(items=items, pagination=Pagination.build(page, limit, total))
    except Exception as e:
        raise handle_exception(e)

@router.post("", response_model=WatchHistoryEntryResponse, status_code=status.HTTP_201_CREATED)
def mark_watched(
    payload: WatchHistoryCreate,
    response: Response,
    current_user: int = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark a title as watched. Re-marking a title counts a rewatch (200)."""
    try:
        entry, created = WatchHistoryService(db).add_entry(
            current_user, payload.movie_id, payload.watched_at, payload.rating, payload.notes
        )
        if not created:
            response.status_code = status.HTTP_200_OK
        return entry
    except Exception as e:
        raise handle_exception(e)

@router.get("/stats", response_model=WatchHistoryStats)
def watch_history_stats(current_user: int = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return WatchHistoryService(db).get_stats(current_user)
    except Exception as e:
        raise handle_exception(e)

@router.get("/{entry_id}", response_model=WatchHistoryEntryResponse)
def get_watch_history_entry(
    entry_id: int,
    current_user: int = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return WatchHistoryService(db).get_entry(current_user, entry_id)
    except Exception as e:
        raise handle_exception(e)

@router.put("/{entry_id}", response_model=WatchHistoryEntryResponse)
def update_watch_history_entry(
    entry_id: int,
    payload: WatchHistoryUpdate,
    current_user: int = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update rating, notes or watched date"""
    try:
        fields = payload.model_dump(exclude_unset=True)
        return WatchHistoryService(db).update_entry(current_user, entry_id, fields)
    except Exception as e:
        raise handle_exception(e)

@router.delete("/{entry_id}", response_model=MessageResponse)
def remove_watch_history_entry(
    entry_id: int,
    current_user: int = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        WatchHistoryService(db).remove_entry(current_user, entry_id)
        return MessageResponse(message="Removed from watch history")
    except Exception as e:
        raise handle_exception(e)
