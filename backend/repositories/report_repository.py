"""
Repository for user report operations.
"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from repositories.base import BaseRepository
from repositories.db_models import Report, ReportStatus


class ReportRepository(BaseRepository[Report]):
    """Repository for user report data access."""

    def __init__(self, db: Session):
        super().__init__(Report, db)

    def get_pending_duplicate(
        self, reporter_id: int, reported_user_id: int
    ) -> Optional[Report]:
        """Get the reporter's pending report against the same user, if any."""
        return (
            self.db.query(Report)
            .filter(
                Report.reporter_id == reporter_id,
                Report.reported_user_id == reported_user_id,
                Report.status == ReportStatus.PENDING,
            )
            .first()
        )

    def get_by_reporter(
        self, reporter_id: int, skip: int = 0, limit: int = 20
    ) -> tuple[list[Report], int]:
        """
        Get reports submitted by a user, newest first.

        Returns:
            Tuple of (page of reports, total count)
        """
        query = self.db.query(Report).filter(Report.reporter_id == reporter_id)
        total = query.count()
        items = (
            query.order_by(Report.created_at.desc(), Report.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def get_pending(self, skip: int = 0, limit: int = 50) -> list[Report]:
        """
        Get reports awaiting review, oldest first.

        Reporter and reported user are loaded eagerly for serialization.
        """
        return (
            self.db.query(Report)
            .options(joinedload(Report.reporter), joinedload(Report.reported_user))
            .filter(Report.status == ReportStatus.PENDING)
            .order_by(Report.created_at.asc(), Report.id.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_against_user(self, user_id: int) -> int:
        """Count every report filed against a user."""
        result = (
            self.db.query(func.count(Report.id))
            .filter(Report.reported_user_id == user_id)
            .scalar()
        )
        return result or 0
