"""
Periodic moderation housekeeping.

Run by the background scheduler and by the scripts under ``tasks/``.
"""

from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from helpers.time_utils import utc_now
from repositories.strike_repository import StrikeRepository
from repositories.user_repository import UserRepository


class MaintenanceService:
    """Service for moderation maintenance jobs."""

    @staticmethod
    def reconcile_expired_bans(db: Session, now: Optional[datetime] = None) -> int:
        """
        Persist the lifting of every temporary ban that has run out.

        Permanent bans are never touched.

        Args:
            db: Database session
            now: Reference time, defaults to the current time

        Returns:
            Number of users unbanned
        """
        try:
            count = UserRepository(db).unban_expired(now or utc_now())
            db.commit()
        except Exception:
            db.rollback()
            raise

        if count:
            logger.info(f"Lifted {count} expired temporary ban(s)")
        return count

    @staticmethod
    def cleanup_expired_strikes(
        db: Session, now: Optional[datetime] = None
    ) -> dict[str, int]:
        """
        Delete expired strikes and recount the strikes of affected users.

        Lower counts do not lift bans.

        Args:
            db: Database session
            now: Reference time, defaults to the current time

        Returns:
            Dictionary with counts of deleted strikes and updated users
        """
        now = now or utc_now()
        strike_repo = StrikeRepository(db)
        user_repo = UserRepository(db)

        try:
            user_ids = strike_repo.get_user_ids_with_expired(now)
            deleted = strike_repo.delete_expired(now)
            for user_id in user_ids:
                user_repo.set_strike_count(
                    user_id, strike_repo.count_active_for_user(user_id, now)
                )
            db.commit()
        except Exception:
            db.rollback()
            raise

        if deleted:
            logger.info(
                f"Deleted {deleted} expired strike(s), "
                f"recounted {len(user_ids)} user(s)"
            )
        return {"deleted_strikes": deleted, "users_updated": len(user_ids)}
