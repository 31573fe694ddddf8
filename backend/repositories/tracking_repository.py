"""
Repository for library (book tracking) operations.
"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from repositories.base import BaseRepository
from repositories.db_models import Book, BookTracking, TrackingStatus


class BookRepository(BaseRepository[Book]):
    """Read access to the book catalog."""

    def __init__(self, db: Session):
        super().__init__(Book, db)


class TrackingRepository(BaseRepository[BookTracking]):
    """Repository for per-user book tracking rows."""

    def __init__(self, db: Session):
        super().__init__(BookTracking, db)

    def get_entry(
        self, user_id: int, book_id: int, for_update: bool = False
    ) -> Optional[BookTracking]:
        """
        Get a user's tracking row for a book.

        Args:
            user_id: ID of the user
            book_id: ID of the book
            for_update: Lock the row until the transaction ends

        Returns:
            Tracking row with its book loaded, None if the book is not tracked
        """
        query = (
            self.db.query(BookTracking)
            .options(joinedload(BookTracking.book))
            .filter(BookTracking.user_id == user_id, BookTracking.book_id == book_id)
        )
        if for_update:
            # FOR UPDATE cannot target the nullable side of the eager outer join
            query = query.with_for_update(of=BookTracking).populate_existing()
        return query.first()

    def list_for_user(
        self,
        user_id: int,
        status: Optional[TrackingStatus] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[BookTracking], int]:
        """
        Get a page of a user's library, most recently updated first.

        Args:
            user_id: ID of the user
            status: Only entries with this status (optional)
            skip: Pagination offset
            limit: Pagination limit

        Returns:
            Tuple of (entries with books loaded, total count)
        """
        query = self.db.query(BookTracking).filter(BookTracking.user_id == user_id)
        if status is not None:
            query = query.filter(BookTracking.status == status)

        total = query.count()
        entries = (
            query.options(joinedload(BookTracking.book))
            .order_by(BookTracking.updated_at.desc(), BookTracking.book_id)
            .offset(skip)
            .limit(limit)
            .all()
        )
        return entries, total
