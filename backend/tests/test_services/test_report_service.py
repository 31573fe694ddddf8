"""
Unit tests for ReportService: filing, withdrawing and reviewing reports.
"""

from datetime import datetime, timedelta, timezone

import pytest

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
    User,
    UserStrike,
)
from services.ban_service import BanAction, BanService
from services.report_service import (
    DEFAULT_REPORT_BAN_DAYS,
    ReportAction,
    ReportService,
)


def _utc(dt):
    # SQLite returns naive datetimes
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


@pytest.fixture
def report(db_session, test_user, other_user) -> Report:
    """A pending spam report filed by test_user against other_user."""
    return ReportService.create_report(
        db_session,
        reporter_id=test_user.id,
        reported_user_id=other_user.id,
        reason=ReportReason.SPAM,
        description="Posts links in every note",
    )


class TestCreateReport:
    """Tests for ReportService.create_report"""

    def test_creates_pending_report(self, report, test_user, other_user):
        assert report.id is not None
        assert report.status == ReportStatus.PENDING
        assert report.reporter_id == test_user.id
        assert report.reported_user_id == other_user.id
        assert report.reviewed_by is None

    def test_cannot_report_self(self, db_session, test_user):
        with pytest.raises(CannotReportSelfException):
            ReportService.create_report(
                db_session, test_user.id, test_user.id, ReportReason.SPAM
            )

    def test_unknown_user(self, db_session, test_user):
        with pytest.raises(UserNotFoundException):
            ReportService.create_report(
                db_session, test_user.id, 9999, ReportReason.HARASSMENT
            )

    def test_duplicate_pending_report_rejected(
        self, db_session, report, test_user, other_user
    ):
        with pytest.raises(DuplicateReportException):
            ReportService.create_report(
                db_session, test_user.id, other_user.id, ReportReason.OTHER
            )

    def test_can_report_again_after_review(
        self, db_session, report, test_user, other_user, admin_user
    ):
        ReportService.review_report(
            db_session, report.id, admin_user.id, ReportStatus.REJECTED
        )

        again = ReportService.create_report(
            db_session, test_user.id, other_user.id, ReportReason.SPAM
        )

        assert again.id != report.id


class TestMyReports:
    """Tests for ReportService.get_my_reports"""

    def test_newest_first_and_only_own(
        self, db_session, report, test_user, other_user, admin_user
    ):
        second = ReportService.create_report(
            db_session, test_user.id, admin_user.id, ReportReason.OTHER
        )
        ReportService.create_report(
            db_session, other_user.id, test_user.id, ReportReason.SPAM
        )

        items, total = ReportService.get_my_reports(db_session, test_user.id)

        assert total == 2
        assert [r.id for r in items] == [second.id, report.id]

    def test_pagination(self, db_session, report, test_user, admin_user):
        ReportService.create_report(
            db_session, test_user.id, admin_user.id, ReportReason.OTHER
        )

        items, total = ReportService.get_my_reports(
            db_session, test_user.id, skip=1, limit=1
        )

        assert total == 2
        assert [r.id for r in items] == [report.id]


class TestDeleteReport:
    """Tests for ReportService.delete_report"""

    def test_reporter_withdraws_pending_report(self, db_session, report, test_user):
        ReportService.delete_report(db_session, report.id, test_user.id)

        assert db_session.query(Report).count() == 0

    def test_only_reporter_can_withdraw(self, db_session, report, other_user):
        with pytest.raises(InsufficientPermissionsException):
            ReportService.delete_report(db_session, report.id, other_user.id)

    def test_reviewed_report_cannot_be_withdrawn(
        self, db_session, report, test_user, admin_user
    ):
        ReportService.review_report(
            db_session, report.id, admin_user.id, ReportStatus.RESOLVED
        )

        with pytest.raises(ReportAlreadyReviewedException):
            ReportService.delete_report(db_session, report.id, test_user.id)

    def test_missing_report(self, db_session, test_user):
        with pytest.raises(ReportNotFoundException):
            ReportService.delete_report(db_session, 9999, test_user.id)


class TestPendingReports:
    """Tests for ReportService.get_pending_reports"""

    def test_oldest_first_and_excludes_reviewed(
        self, db_session, report, test_user, other_user, admin_user
    ):
        later = ReportService.create_report(
            db_session, other_user.id, test_user.id, ReportReason.HARASSMENT
        )
        reviewed = ReportService.create_report(
            db_session, test_user.id, admin_user.id, ReportReason.OTHER
        )
        ReportService.review_report(
            db_session, reviewed.id, admin_user.id, ReportStatus.REJECTED
        )

        pending = ReportService.get_pending_reports(db_session)

        assert [r.id for r in pending] == [report.id, later.id]
        assert pending[0].reporter.username == "testuser"


class TestReviewReport:
    """Tests for ReportService.review_report"""

    def test_review_without_action(self, db_session, report, admin_user, other_user):
        result = ReportService.review_report(
            db_session,
            report.id,
            admin_user.id,
            ReportStatus.REJECTED,
            moderator_notes="Not a violation",
        )

        assert result.action == ReportAction.NONE
        assert result.strike is None
        db_session.expire_all()
        stored = db_session.get(Report, report.id)
        assert stored.status == ReportStatus.REJECTED
        assert stored.reviewed_by == admin_user.id
        assert stored.reviewed_at is not None
        assert stored.moderator_notes == "Not a violation"
        assert db_session.query(UserStrike).count() == 0
        assert db_session.get(User, other_user.id).is_banned is False

    def test_warning_issues_strike_linked_to_report(
        self, db_session, report, admin_user, other_user
    ):
        result = ReportService.review_report(
            db_session,
            report.id,
            admin_user.id,
            ReportStatus.RESOLVED,
            action=ReportAction.WARNING,
            moderator_notes="Spam links",
        )

        assert result.strike.action == BanAction.WARNING
        assert result.strike.strike_count == 1
        strike = db_session.query(UserStrike).one()
        assert strike.user_id == other_user.id
        assert strike.report_id == str(report.id)
        assert strike.reason == StrikeReason.OTHER
        assert strike.severity == StrikeSeverity.MINOR
        assert strike.issued_by == admin_user.id
        assert strike.notes == "Spam links"
        assert db_session.get(Report, report.id).status == ReportStatus.RESOLVED

    def test_repeated_warnings_escalate(
        self, db_session, test_user, other_user, admin_user
    ):
        BanService.add_strike(
            db_session, other_user.id, StrikeReason.SPAM, StrikeSeverity.MINOR
        )
        BanService.add_strike(
            db_session, other_user.id, StrikeReason.SPAM, StrikeSeverity.MINOR
        )
        report = ReportService.create_report(
            db_session, test_user.id, other_user.id, ReportReason.HARASSMENT
        )

        result = ReportService.review_report(
            db_session,
            report.id,
            admin_user.id,
            ReportStatus.RESOLVED,
            action=ReportAction.WARNING,
        )

        assert result.strike.action == BanAction.TEMP_BAN
        assert db_session.get(User, other_user.id).is_banned is True

    def test_temp_ban_defaults_to_seven_days(
        self, db_session, report, admin_user, other_user
    ):
        before = datetime.now(timezone.utc)

        result = ReportService.review_report(
            db_session,
            report.id,
            admin_user.id,
            ReportStatus.RESOLVED,
            action=ReportAction.TEMP_BAN,
        )

        assert DEFAULT_REPORT_BAN_DAYS == 7
        assert result.ban_days == 7
        expected = before + timedelta(days=7)
        assert abs(_utc(result.banned_until) - expected) < timedelta(minutes=1)
        db_session.expire_all()
        user = db_session.get(User, other_user.id)
        assert user.is_banned is True
        assert user.banned_by == admin_user.id
        assert user.ban_reason == "Reported for spam"

    def test_temp_ban_custom_days_and_notes_as_reason(
        self, db_session, report, admin_user, other_user
    ):
        before = datetime.now(timezone.utc)

        result = ReportService.review_report(
            db_session,
            report.id,
            admin_user.id,
            ReportStatus.RESOLVED,
            action=ReportAction.TEMP_BAN,
            moderator_notes="Link spam in notes",
            ban_days=2,
        )

        assert result.ban_days == 2
        assert abs(
            _utc(result.banned_until) - (before + timedelta(days=2))
        ) < timedelta(minutes=1)
        db_session.expire_all()
        assert db_session.get(User, other_user.id).ban_reason == "Link spam in notes"

    def test_ban_is_permanent(self, db_session, report, admin_user, other_user):
        result = ReportService.review_report(
            db_session,
            report.id,
            admin_user.id,
            ReportStatus.RESOLVED,
            action=ReportAction.BAN,
        )

        assert result.banned_until is None
        db_session.expire_all()
        user = db_session.get(User, other_user.id)
        assert user.is_banned is True
        assert user.banned_until is None

    def test_cannot_ban_admin_and_report_stays_pending(
        self, db_session, test_user, admin_user
    ):
        report = ReportService.create_report(
            db_session, test_user.id, admin_user.id, ReportReason.OTHER
        )

        with pytest.raises(CannotBanAdminException):
            ReportService.review_report(
                db_session,
                report.id,
                admin_user.id,
                ReportStatus.RESOLVED,
                action=ReportAction.BAN,
            )

        db_session.rollback()
        assert db_session.get(Report, report.id).status == ReportStatus.PENDING

    def test_already_reviewed(self, db_session, report, admin_user):
        ReportService.review_report(
            db_session, report.id, admin_user.id, ReportStatus.REJECTED
        )

        with pytest.raises(ReportAlreadyReviewedException):
            ReportService.review_report(
                db_session,
                report.id,
                admin_user.id,
                ReportStatus.RESOLVED,
                action=ReportAction.WARNING,
            )
        assert db_session.query(UserStrike).count() == 0

    def test_missing_report(self, db_session, admin_user):
        with pytest.raises(ReportNotFoundException):
            ReportService.review_report(
                db_session, 9999, admin_user.id, ReportStatus.RESOLVED
            )

    def test_reports_counted_in_moderation_summary(
        self, db_session, report, other_user
    ):
        summary = BanService.get_moderation_summary(db_session, other_user.id)

        assert summary["reports_against"] == 1
