"""
Repository for activity log entries.
"""

from typing import Optional

from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from repositories.db_models import ActivityLog


class ActivityLogRepository(BaseRepository[ActivityLog]):
    """Repository for activity log data access."""

    def __init__(self, db: Session):
        super().__init__(ActivityLog, db)

    def get_user_history(
        self,
        user_id: int,
        action: Optional[str] = None,
        resource_type: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[ActivityLog], int]:
        """
        Get a user's activity, newest first.

        Args:
            user_id: ID of the user
            action: Filter by action name (optional)
            resource_type: Filter by resource type (optional)
            skip: Pagination offset
            limit: Pagination limit

        Returns:
            Tuple of (entries, total count)
        """
        query = self.db.query(ActivityLog).filter(ActivityLog.user_id == user_id)
        if action:
            query = query.filter(ActivityLog.action == action)
        if resource_type:
            query = query.filter(ActivityLog.resource_type == resource_type)

        total = query.count()
        entries = (
            query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return entries, total
