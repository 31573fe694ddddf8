"""
Service for user reports and their review.

Users report other users; administrators review pending reports and may
enforce on the reported user in the same step. A warning goes through the
strike ladder in ``BanService.add_strike``, so repeated warnings escalate
exactly like directly issued strikes.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from helpers.time_utils import utc_now
from models.exceptions import (
    CannotBanAdminException,
    CannotReportSelfException,
    DuplicateReportException,
    InsufficientPermissionsException,
    ReportAlreadyReviewedException,
    ReportNotFoundException,
    UserNotFoundException,
)
from repositories.db_models import (
    Report,
    ReportReason,
    ReportStatus,
    StrikeReason,
    StrikeSeverity,
)
from repositories.report_repository import ReportRepository
from repositories.user_repository import UserRepository
from services.ban_service import BanResult, BanService

# Temporary ban length when the reviewer does not pick one
DEFAULT_REPORT_BAN_DAYS = 7


class ReportAction(str, enum.Enum):
    """Enforcement taken on the reported user when a report is reviewed."""

    NONE = "none"
    WARNING = "warning"
    TEMP_BAN = "temp_ban"
    BAN = "ban"


@dataclass
class ReportReviewResult:
    """Outcome of ``ReportService.review_report``."""

    report: Report
    action: ReportAction
    strike: Optional[BanResult] = None
    ban_days: Optional[int] = None
    banned_until: Optional[datetime] = None


class ReportService:
    """Service for user report business logic."""

    @staticmethod
    def create_report(
        db: Session,
        reporter_id: int,
        reported_user_id: int,
        reason: ReportReason,
        description: Optional[str] = None,
    ) -> Report:
        """
        File a report against another user.

        Args:
            db: Database session
            reporter_id: ID of the reporting user
            reported_user_id: ID of the user being reported
            reason: Report category
            description: Optional details from the reporter

        Returns:
            Created report, pending review

        Raises:
            UserNotFoundException: If the reported user does not exist
            CannotReportSelfException: If users report themselves
            DuplicateReportException: If a pending report on that user exists
        """
        if reporter_id == reported_user_id:
            raise CannotReportSelfException()

        if not UserRepository(db).get_by_id(reported_user_id):
            raise UserNotFoundException(reported_user_id)

        report_repo = ReportRepository(db)
        if report_repo.get_pending_duplicate(reporter_id, reported_user_id):
            raise DuplicateReportException()

        report = report_repo.create(
            Report(
                reporter_id=reporter_id,
                reported_user_id=reported_user_id,
                reason=reason,
                description=description,
                status=ReportStatus.PENDING,
            )
        )
        logger.info(
            f"Report {report.id} filed by user {reporter_id} "
            f"against user {reported_user_id} ({reason.value})"
        )
        return report

    @staticmethod
    def get_my_reports(
        db: Session, reporter_id: int, skip: int = 0, limit: int = 20
    ) -> tuple[list[Report], int]:
        """Reports submitted by a user, newest first, with the total count."""
        return ReportRepository(db).get_by_reporter(reporter_id, skip, limit)

    @staticmethod
    def delete_report(db: Session, report_id: int, user_id: int) -> None:
        """
        Withdraw a pending report.

        Raises:
            ReportNotFoundException: If report not found
            InsufficientPermissionsException: If the user did not file it
            ReportAlreadyReviewedException: If it was already reviewed
        """
        report_repo = ReportRepository(db)
        report = report_repo.get_by_id(report_id)
        if not report:
            raise ReportNotFoundException(report_id)

        if report.reporter_id != user_id:
            raise InsufficientPermissionsException(
                "You can only delete your own reports"
            )

        if report.status != ReportStatus.PENDING:
            raise ReportAlreadyReviewedException(
                "Cannot delete a report that has been reviewed"
            )

        report_repo.delete(report)
        report_repo.commit()

    @staticmethod
    def get_pending_reports(
        db: Session, skip: int = 0, limit: int = 50
    ) -> list[Report]:
        """Reports awaiting review, oldest first."""
        return ReportRepository(db).get_pending(skip, limit)

    @staticmethod
    def review_report(
        db: Session,
        report_id: int,
        reviewer_id: int,
        status: ReportStatus,
        action: ReportAction = ReportAction.NONE,
        moderator_notes: Optional[str] = None,
        ban_days: Optional[int] = None,
    ) -> ReportReviewResult:
        """
        Close a pending report and optionally enforce on the reported user.

        The report update and the enforcement are committed together:
        - warning: one "other"/"minor" strike carrying the report ID
        - temp_ban: ``ban_days`` days, DEFAULT_REPORT_BAN_DAYS when unset
        - ban: permanent ban

        Args:
            db: Database session
            report_id: ID of the report
            reviewer_id: ID of the reviewing administrator
            status: Final report status (not pending)
            action: Enforcement to apply
            moderator_notes: Optional notes, also used as the ban reason
            ban_days: Temporary ban length

        Returns:
            ReportReviewResult with the enforcement outcome

        Raises:
            ReportNotFoundException: If report not found
            ReportAlreadyReviewedException: If the report is not pending
            CannotBanAdminException: If a ban targets an administrator
        """
        report_repo = ReportRepository(db)
        report = report_repo.get_by_id_for_update(report_id)
        if not report:
            raise ReportNotFoundException(report_id)

        if report.status != ReportStatus.PENDING:
            raise ReportAlreadyReviewedException()

        target_id = report.reported_user_id
        if action in (ReportAction.TEMP_BAN, ReportAction.BAN):
            target = UserRepository(db).get_by_id(target_id)
            if not target:
                raise UserNotFoundException(target_id)
            if target.is_global_admin:
                raise CannotBanAdminException()

        report.status = status
        report.moderator_notes = moderator_notes
        report.reviewed_by = reviewer_id
        report.reviewed_at = utc_now()

        result = ReportReviewResult(report=report, action=action)
        ban_reason = moderator_notes or f"Reported for {report.reason.value}"

        # BanService commits the pending report changes with its own
        if action == ReportAction.WARNING:
            result.strike = BanService.add_strike(
                db,
                target_id,
                reason=StrikeReason.OTHER,
                severity=StrikeSeverity.MINOR,
                issued_by=reviewer_id,
                report_id=str(report_id),
                notes=moderator_notes,
            )
        elif action == ReportAction.TEMP_BAN:
            result.ban_days = ban_days or DEFAULT_REPORT_BAN_DAYS
            result.banned_until = BanService.temp_ban(
                db, target_id, result.ban_days, ban_reason, reviewer_id
            )
        elif action == ReportAction.BAN:
            BanService.perma_ban(db, target_id, ban_reason, reviewer_id)
        else:
            report_repo.commit()

        logger.info(
            f"Report {report_id} reviewed by user {reviewer_id}: "
            f"{status.value}, action {action.value}"
        )
        return result
