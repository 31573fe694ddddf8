"""
Repository for user strike operations.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from repositories.base import BaseRepository
from repositories.db_models import UserStrike


def _active_filter(now: datetime):  # type: ignore[no-untyped-def]
    return or_(
        UserStrike.expires_at.is_(None),  # Never expires
        UserStrike.expires_at > now,  # Not yet expired
    )


class StrikeRepository(BaseRepository[UserStrike]):
    """Repository for user strike data access."""

    def __init__(self, db: Session):
        super().__init__(UserStrike, db)

    def get_active_for_user(self, user_id: int, now: datetime) -> list[UserStrike]:
        """
        Get a user's active strikes, newest first.

        Args:
            user_id: ID of the user
            now: Reference time (UTC)

        Returns:
            Strikes that have no expiry or expire after ``now``
        """
        return (
            self.db.query(UserStrike)
            .filter(UserStrike.user_id == user_id, _active_filter(now))
            .order_by(UserStrike.created_at.desc(), UserStrike.id.desc())
            .all()
        )

    def count_active_for_user(self, user_id: int, now: datetime) -> int:
        """Count a user's active strikes."""
        result = (
            self.db.query(func.count(UserStrike.id))
            .filter(UserStrike.user_id == user_id, _active_filter(now))
            .scalar()
        )
        return result or 0

    def get_all_for_user(self, user_id: int) -> list[UserStrike]:
        """
        Get all strikes for a user, expired ones included, newest first.

        The issuing moderator is loaded eagerly for serialization.
        """
        return (
            self.db.query(UserStrike)
            .options(joinedload(UserStrike.issuer))
            .filter(UserStrike.user_id == user_id)
            .order_by(UserStrike.created_at.desc(), UserStrike.id.desc())
            .all()
        )

    def get_for_user(self, strike_id: int, user_id: int) -> Optional[UserStrike]:
        """Get a strike only if it belongs to the given user."""
        return (
            self.db.query(UserStrike)
            .filter(UserStrike.id == strike_id, UserStrike.user_id == user_id)
            .first()
        )

    def delete_all_for_user(self, user_id: int) -> int:
        """Delete every strike of a user. Does not commit."""
        return (
            self.db.query(UserStrike)
            .filter(UserStrike.user_id == user_id)
            .delete(synchronize_session=False)
        )

    def get_user_ids_with_expired(self, now: datetime) -> list[int]:
        """Distinct IDs of users holding at least one expired strike."""
        rows = (
            self.db.query(UserStrike.user_id)
            .filter(UserStrike.expires_at.isnot(None), UserStrike.expires_at <= now)
            .distinct()
            .all()
        )
        return [row[0] for row in rows]

    def delete_expired(self, now: datetime) -> int:
        """Delete strikes whose expiry has passed. Does not commit."""
        return (
            self.db.query(UserStrike)
            .filter(UserStrike.expires_at.isnot(None), UserStrike.expires_at <= now)
            .delete(synchronize_session=False)
        )
