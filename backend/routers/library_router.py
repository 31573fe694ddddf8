"""Library router endpoints: the current user's tracked books."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationSkip
from repositories.database import get_db
from services.library_service import LibraryService
from services.reading_progress_service import TrackingPatch

router = APIRouter(prefix="/library", tags=["library"])


@router.get("", response_model=schemas.LibraryPage)
def list_library(
    status_filter: Optional[db_models.TrackingStatus] = Query(None, alias="status"),
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 20,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict:
    """Get the current user's library, most recently updated first."""
    user_id: int = current_user.id  # type: ignore[assignment]
    items, total = LibraryService.list_entries(
        db, user_id, status=status_filter, skip=skip, limit=limit
    )
    return {"items": items, "total": total, "skip": skip, "limit": limit}


@router.get("/{book_id}", response_model=schemas.LibraryEntry)
def get_library_entry(
    book_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.BookTracking:
    """Get one book of the current user's library."""
    user_id: int = current_user.id  # type: ignore[assignment]
    return LibraryService.get_entry(db, user_id, book_id)


@router.post(
    "/{book_id}",
    response_model=schemas.LibraryEntry,
    status_code=status.HTTP_201_CREATED,
)
def add_to_library(
    book_id: int,
    data: Optional[schemas.LibraryEntryCreate] = None,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.BookTracking:
    """Add a book to the current user's library (plan to read by default)."""
    user_id: int = current_user.id  # type: ignore[assignment]
    data = data or schemas.LibraryEntryCreate()
    return LibraryService.add_entry(db, user_id, book_id, status=data.status)


@router.patch("/{book_id}", response_model=schemas.LibraryEntry)
def update_library_entry(
    book_id: int,
    update: schemas.LibraryEntryUpdate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.BookTracking:
    """
    Update progress, rating, notes or status of a library entry.

    Status, dates and last read time follow from the fields sent: reaching
    the last chapter completes the book, any other progress marks it as
    being read.
    """
    user_id: int = current_user.id  # type: ignore[assignment]
    return LibraryService.update_entry(
        db, user_id, book_id, TrackingPatch.from_schema(update)
    )


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_from_library(
    book_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> None:
    """Remove a book from the current user's library."""
    user_id: int = current_user.id  # type: ignore[assignment]
    LibraryService.remove_entry(db, user_id, book_id)
