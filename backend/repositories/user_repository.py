"""
User repository for database operations.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository


class UserRepository(BaseRepository[db_models.User]):
    """Repository for User entity database operations."""

    def __init__(self, db: Session):
        """
        Initialize user repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.User, db)

    def get_by_email(self, email: str) -> Optional[db_models.User]:
        """
        Get user by email.

        Args:
            email: User email

        Returns:
            User if found, None otherwise
        """
        return (
            self.db.query(db_models.User).filter(db_models.User.email == email).first()
        )

    def unban_expired(self, now: datetime) -> int:
        """
        Lift every temporary ban whose end date has passed.

        Does not commit.

        Args:
            now: Reference time (UTC)

        Returns:
            Number of users unbanned
        """
        return (
            self.db.query(db_models.User)
            .filter(
                db_models.User.is_banned == True,  # noqa: E712
                db_models.User.banned_until.isnot(None),
                db_models.User.banned_until <= now,
            )
            .update(
                {
                    db_models.User.is_banned: False,
                    db_models.User.banned_until: None,
                    db_models.User.ban_reason: None,
                    db_models.User.banned_by: None,
                    db_models.User.banned_at: None,
                },
                synchronize_session=False,
            )
        )

    def set_strike_count(self, user_id: int, strike_count: int) -> None:
        """Overwrite a user's denormalized strike counter. Does not commit."""
        self.db.query(db_models.User).filter(db_models.User.id == user_id).update(
            {db_models.User.strike_count: strike_count},
            synchronize_session=False,
        )
