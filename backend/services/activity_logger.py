"""
Per-user activity log.

Entries are written after the change they describe has been committed.
Writing is best effort: a failure is rolled back and logged, never raised,
so it cannot undo or fail the change itself.
"""

from enum import Enum
from typing import Any, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from helpers.time_utils import utc_now
from repositories.activity_log_repository import ActivityLogRepository
from repositories.db_models import ActivityLog


class ActivityAction:
    """Activity action names."""

    BOOK_ADDED_TO_LIBRARY = "book.addedToLibrary"
    BOOK_REMOVED_FROM_LIBRARY = "book.removedFromLibrary"
    BOOK_STATUS_UPDATED = "book.statusUpdated"
    BOOK_CURRENT_CHAPTER_UPDATED = "book.currentChapterUpdated"
    BOOK_CURRENT_VOLUME_UPDATED = "book.currentVolumeUpdated"
    BOOK_RATING_UPDATED = "book.ratingUpdated"
    BOOK_NOTES_UPDATED = "book.notesUpdated"


# Library fields that get their own activity entry when changed
FIELD_ACTIONS = {
    "status": ActivityAction.BOOK_STATUS_UPDATED,
    "current_chapter": ActivityAction.BOOK_CURRENT_CHAPTER_UPDATED,
    "current_volume": ActivityAction.BOOK_CURRENT_VOLUME_UPDATED,
    "rating": ActivityAction.BOOK_RATING_UPDATED,
    "notes": ActivityAction.BOOK_NOTES_UPDATED,
}

RESOURCE_BOOK = "book"


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


class ActivityLogger:
    """Writes and reads activity log entries."""

    @staticmethod
    def log(
        db: Session,
        user_id: int,
        action: str,
        metadata: Optional[dict[str, Any]],
        resource_type: str,
        resource_id: Any,
    ) -> Optional[ActivityLog]:
        """
        Record one activity entry.

        Args:
            db: Database session, with no pending changes of its own
            user_id: User who performed the action
            action: Action name (see ActivityAction)
            metadata: JSON-serializable details
            resource_type: Kind of resource acted on
            resource_id: ID of the resource acted on

        Returns:
            The stored entry, or None if it could not be written
        """
        entry = ActivityLog(
            user_id=user_id,
            action=action,
            details={key: _to_json(value) for key, value in (metadata or {}).items()},
            resource_type=resource_type,
            resource_id=str(resource_id),
            created_at=utc_now(),
        )

        try:
            db.add(entry)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(
                f"Failed to write activity log '{action}' for user {user_id}: {e}"
            )
            return None

        return entry

    @staticmethod
    def log_field_changes(
        db: Session,
        user_id: int,
        book_id: int,
        changes: dict[str, Any],
    ) -> None:
        """Record one entry per changed user-facing library field."""
        for field, action in FIELD_ACTIONS.items():
            if field in changes:
                ActivityLogger.log(
                    db,
                    user_id,
                    action,
                    metadata={"bookId": book_id, field: changes[field]},
                    resource_type=RESOURCE_BOOK,
                    resource_id=book_id,
                )

    @staticmethod
    def get_user_history(
        db: Session,
        user_id: int,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[ActivityLog], int]:
        """
        Get a user's activity, newest first.

        Returns:
            Tuple of (entries, total count)
        """
        return ActivityLogRepository(db).get_user_history(
            user_id,
            action=action,
            resource_type=resource_type,
            skip=skip,
            limit=limit,
        )
