from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from cinelog.db import get_db
from cinelog.core.auth import get_current_user
from cinelog.core.exceptions import BaseAppException
from cinelog.schemas.common import MessageResponse, Pagination
from cinelog.schemas.watchlist import (
    WatchlistCreate, WatchlistUpdate, WatchlistEntryResponse, WatchlistPage,
    ReorderRequest, ReorderResponse, BulkPriorityRequest, WatchlistStats,
    WatchlistMovieStatus,
)
from cinelog.services.watchlist_service import WatchlistService

router = APIRouter(prefix="/watchlist", tags=["watchlist"])

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

@router.get("", response_model=WatchlistPage)
def list_watchlist(
    page: Optional[int] = Query(None, description="Page number (1-based)"),
    limit: Optional[int] = Query(None, description="Items per page"),
    search: Optional[str] = Query(None, description="Case-insensitive title search"),
    priority: Optional[str] = Query(None, description="low, medium or high"),
    sort_by: str = Query("addedAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    current_user: int = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the user's watchlist with filters, sorting and pagination"""
    try:
        items, total, page, limit = WatchlistService(db).list_entries(
            current_user, page=page, limit=limit, search=search,
            priority=priority, sort_by=sort_by, sort_order=sort_order,
        )
        return WatchlistPage(items=items, pagination=Pagination.build(page, limit, total))
    except Exception as e:
        raise handle_exception(e)

@router.post("", response_model=WatchlistEntryResponse, status_code=status.HTTP_201_CREATED)
def add_to_watchlist(
    payload: WatchlistCreate,
    current_user: int = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add a movie to the watchlist"""
    try:
        return WatchlistService(db).add_entry(current_user, payload.movie_id, payload.priority)
    except Exception as e:
        raise handle_exception(e)

@router.get("/stats", response_model=WatchlistStats)
def watchlist_stats(current_user: int = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return WatchlistService(db).get_stats(current_user)
    except Exception as e:
        raise handle_exception(e)

@router.get("/movie/{movie_id}", response_model=WatchlistMovieStatus)
def watchlist_status_for_movie(
    movie_id: int,
    current_user: int = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Whether a movie is on the user's watchlist"""
    try:
        entry = WatchlistService(db).get_movie_status(current_user, movie_id)
        return WatchlistMovieStatus(in_watchlist=entry is not None, entry=entry)
    except Exception as e:
        raise handle_exception(e)

@router.put("/reorder", response_model=ReorderResponse)
def reorder_watchlist(
    payload: ReorderRequest,
    current_user: int = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Move the given entries to the front of the watchlist in the given order"""
    try:
        items = WatchlistService(db).reorder_watchlist(current_user, payload.ordered_ids)
        return ReorderResponse(message="Watchlist reordered successfully", items=items)
    except Exception as e:
        raise handle_exception(e)

@router.put("/bulk-priority", response_model=List[WatchlistEntryResponse])
def bulk_update_priority(
    payload: BulkPriorityRequest,
    current_user: int = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update several priorities at once; all or nothing"""
    try:
        return WatchlistService(db).bulk_update_priorities(current_user, payload.updates)
    except Exception as e:
        raise handle_exception(e)

@router.get("/{entry_id}", response_model=WatchlistEntryResponse)
def get_watchlist_entry(
    entry_id: int,
    current_user: int = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        return WatchlistService(db).get_entry(current_user, entry_id)
    except Exception as e:
        raise handle_exception(e)

@router.put("/{entry_id}", response_model=WatchlistEntryResponse)
def update_watchlist_entry(
    entry_id: int,
    payload: WatchlistUpdate,
    current_user: int = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change an entry's priority"""
    try:
        return WatchlistService(db).update_priority(current_user, entry_id, payload.priority)
    except Exception as e:
        raise handle_exception(e)

@router.delete("/{entry_id}", response_model=MessageResponse)
def remove_from_watchlist(
    entry_id: int,
    current_user: int = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    try:
        WatchlistService(db).remove_entry(current_user, entry_id)
        return MessageResponse(message="Removed from watchlist")
    except Exception as e:
        raise handle_exception(e)
