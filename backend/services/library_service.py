"""
Service for a user's library: the books they track and their progress.
"""

from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from models.exceptions import (
    BookNotFoundException,
    TrackingAlreadyExistsException,
    TrackingNotFoundException,
)
from repositories.db_models import Book, BookTracking, TrackingStatus
from repositories.tracking_repository import BookRepository, TrackingRepository
from services.activity_logger import RESOURCE_BOOK, ActivityAction, ActivityLogger
from services.reading_progress_service import TrackingPatch, apply_update


class LibraryService:
    """Service for library entries."""

    @staticmethod
    def _get_book(db: Session, book_id: int) -> Book:
        book = BookRepository(db).get_by_id(book_id)
        if not book:
            raise BookNotFoundException(book_id)
        return book

    @staticmethod
    def list_entries(
        db: Session,
        user_id: int,
        status: Optional[TrackingStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[BookTracking], int]:
        """
        Get a page of a user's library.

        Args:
            db: Database session
            user_id: ID of the user
            status: Only entries with this status (optional)
            skip: Pagination offset
            limit: Pagination limit

        Returns:
            Tuple of (entries, total count)
        """
        return TrackingRepository(db).list_for_user(
            user_id, status=status, skip=skip, limit=limit
        )

    @staticmethod
    def get_entry(db: Session, user_id: int, book_id: int) -> BookTracking:
        """
        Get one library entry.

        Raises:
            BookNotFoundException: If book not found
            TrackingNotFoundException: If the book is not in the library
        """
        LibraryService._get_book(db, book_id)
        entry = TrackingRepository(db).get_entry(user_id, book_id)
        if not entry:
            raise TrackingNotFoundException(book_id)
        return entry

    @staticmethod
    def add_entry(
        db: Session,
        user_id: int,
        book_id: int,
        status: TrackingStatus = TrackingStatus.PLAN_TO_READ,
    ) -> BookTracking:
        """
        Add a book to a user's library.

        Raises:
            BookNotFoundException: If book not found
            TrackingAlreadyExistsException: If the book is already tracked
        """
        LibraryService._get_book(db, book_id)
        tracking_repo = TrackingRepository(db)
        if tracking_repo.get_entry(user_id, book_id):
            raise TrackingAlreadyExistsException(book_id)

        tracking_repo.create(
            BookTracking(user_id=user_id, book_id=book_id, status=status)
        )

        ActivityLogger.log(
            db,
            user_id,
            ActivityAction.BOOK_ADDED_TO_LIBRARY,
            metadata={"bookId": book_id, "status": status},
            resource_type=RESOURCE_BOOK,
            resource_id=book_id,
        )
        return tracking_repo.get_entry(user_id, book_id)  # type: ignore[return-value]

    @staticmethod
    def remove_entry(db: Session, user_id: int, book_id: int) -> None:
        """
        Remove a book from a user's library.

        Raises:
            BookNotFoundException: If book not found
            TrackingNotFoundException: If the book is not in the library
        """
        entry = LibraryService.get_entry(db, user_id, book_id)
        tracking_repo = TrackingRepository(db)
        tracking_repo.delete(entry)
        tracking_repo.commit()

        ActivityLogger.log(
            db,
            user_id,
            ActivityAction.BOOK_REMOVED_FROM_LIBRARY,
            metadata={"bookId": book_id},
            resource_type=RESOURCE_BOOK,
            resource_id=book_id,
        )

    @staticmethod
    def update_entry(
        db: Session, user_id: int, book_id: int, patch: TrackingPatch
    ) -> BookTracking:
        """
        Apply a partial update to a library entry.

        The row is locked for the read-modify-write. Nothing is written,
        and updated_at is left alone, when the patch changes nothing.

        Args:
            db: Database session
            user_id: ID of the user
            book_id: ID of the book
            patch: Fields sent by the client

        Returns:
            The entry, with its book loaded

        Raises:
            BookNotFoundException: If book not found
            TrackingNotFoundException: If the book is not in the library
        """
        book = LibraryService._get_book(db, book_id)
        tracking_repo = TrackingRepository(db)

        try:
            entry = tracking_repo.get_entry(user_id, book_id, for_update=True)
            if not entry:
                raise TrackingNotFoundException(book_id)

            changes = apply_update(entry, book, patch)
            if not changes:
                db.rollback()
                return tracking_repo.get_entry(user_id, book_id)  # type: ignore[return-value]

            for name, value in changes.items():
                setattr(entry, name, value)
            tracking_repo.commit()
        except Exception:
            db.rollback()
            raise

        logger.debug(
            f"Library entry {user_id}/{book_id} updated: {', '.join(sorted(changes))}"
        )
        ActivityLogger.log_field_changes(db, user_id, book_id, changes)
        return tracking_repo.get_entry(user_id, book_id)  # type: ignore[return-value]
