"""
Tests for LibraryService.
"""

from decimal import Decimal

import pytest
from sqlalchemy.exc import SQLAlchemyError

from models.exceptions import (
    BookNotFoundException,
    TrackingAlreadyExistsException,
    TrackingNotFoundException,
)
from repositories.db_models import ActivityLog, BookTracking, TrackingStatus
from services.activity_logger import ActivityAction
from services.library_service import LibraryService
from services.reading_progress_service import TrackingPatch


def _actions(db_session, user_id):
    return [
        row.action
        for row in db_session.query(ActivityLog)
        .filter(ActivityLog.user_id == user_id)
        .order_by(ActivityLog.id)
        .all()
    ]


class TestLibraryServiceEntries:
    """Tests for adding, listing and removing entries"""

    def test_add_entry(self, db_session, test_user, test_book):
        entry = LibraryService.add_entry(db_session, test_user.id, test_book.id)

        assert entry.status == TrackingStatus.PLAN_TO_READ
        assert entry.book.title == "Test Manga"
        assert _actions(db_session, test_user.id) == [
            ActivityAction.BOOK_ADDED_TO_LIBRARY
        ]

    def test_add_entry_with_status(self, db_session, test_user, test_book):
        entry = LibraryService.add_entry(
            db_session, test_user.id, test_book.id, status=TrackingStatus.READING
        )

        assert entry.status == TrackingStatus.READING
        log = db_session.query(ActivityLog).one()
        assert log.details == {"bookId": test_book.id, "status": "reading"}
        assert log.resource_type == "book"
        assert log.resource_id == str(test_book.id)

    def test_add_entry_twice_conflicts(self, db_session, tracking, test_user, test_book):
        with pytest.raises(TrackingAlreadyExistsException):
            LibraryService.add_entry(db_session, test_user.id, test_book.id)

    def test_add_unknown_book(self, db_session, test_user):
        with pytest.raises(BookNotFoundException):
            LibraryService.add_entry(db_session, test_user.id, 999)

    def test_get_entry_not_tracked(self, db_session, test_user, test_book):
        with pytest.raises(TrackingNotFoundException):
            LibraryService.get_entry(db_session, test_user.id, test_book.id)

    def test_list_entries_filters_by_status(
        self, db_session, test_user, test_book, ongoing_book
    ):
        LibraryService.add_entry(db_session, test_user.id, test_book.id)
        LibraryService.add_entry(
            db_session, test_user.id, ongoing_book.id, status=TrackingStatus.READING
        )

        entries, total = LibraryService.list_entries(db_session, test_user.id)
        assert total == 2
        assert len(entries) == 2

        reading, reading_total = LibraryService.list_entries(
            db_session, test_user.id, status=TrackingStatus.READING
        )
        assert reading_total == 1
        assert reading[0].book_id == ongoing_book.id

    def test_list_entries_only_own(self, db_session, tracking, other_user):
        entries, total = LibraryService.list_entries(db_session, other_user.id)
        assert entries == []
        assert total == 0

    def test_remove_entry(self, db_session, tracking, test_user, test_book):
        LibraryService.remove_entry(db_session, test_user.id, test_book.id)

        assert db_session.query(BookTracking).count() == 0
        assert _actions(db_session, test_user.id) == [
            ActivityAction.BOOK_REMOVED_FROM_LIBRARY
        ]

    def test_remove_entry_not_tracked(self, db_session, test_user, test_book):
        with pytest.raises(TrackingNotFoundException):
            LibraryService.remove_entry(db_session, test_user.id, test_book.id)


class TestLibraryServiceUpdate:
    """Tests for update_entry"""

    def test_progress_update_persists_and_logs(
        self, db_session, tracking, test_user, test_book
    ):
        entry = LibraryService.update_entry(
            db_session, test_user.id, test_book.id, TrackingPatch(current_chapter=12)
        )

        assert entry.current_chapter == 12
        assert entry.status == TrackingStatus.READING
        assert entry.start_date is not None
        assert entry.last_read_at is not None
        assert _actions(db_session, test_user.id) == [
            ActivityAction.BOOK_STATUS_UPDATED,
            ActivityAction.BOOK_CURRENT_CHAPTER_UPDATED,
        ]

    def test_field_log_metadata(self, db_session, tracking, test_user, test_book):
        LibraryService.update_entry(
            db_session, test_user.id, test_book.id, TrackingPatch(rating=Decimal("4.5"))
        )

        log = db_session.query(ActivityLog).one()
        assert log.action == ActivityAction.BOOK_RATING_UPDATED
        assert log.details == {"bookId": test_book.id, "rating": "4.5"}

    def test_noop_update_writes_nothing(
        self, db_session, tracking, test_user, test_book
    ):
        """A patch that changes nothing leaves updated_at and the log alone."""
        before = tracking.updated_at

        entry = LibraryService.update_entry(
            db_session,
            test_user.id,
            test_book.id,
            TrackingPatch(status=TrackingStatus.PLAN_TO_READ),
        )

        assert entry.updated_at == before
        assert _actions(db_session, test_user.id) == []

    def test_completion_through_last_chapter(
        self, db_session, tracking, test_user, test_book
    ):
        entry = LibraryService.update_entry(
            db_session, test_user.id, test_book.id, TrackingPatch(current_chapter=100)
        )

        assert entry.status == TrackingStatus.COMPLETED
        assert entry.current_volume == 10
        assert entry.finish_date is not None

    def test_reset_to_plan_to_read(self, db_session, tracking, test_user, test_book):
        LibraryService.update_entry(
            db_session, test_user.id, test_book.id, TrackingPatch(current_chapter=30)
        )

        entry = LibraryService.update_entry(
            db_session,
            test_user.id,
            test_book.id,
            TrackingPatch(status=TrackingStatus.PLAN_TO_READ),
        )

        assert entry.status == TrackingStatus.PLAN_TO_READ
        assert entry.current_chapter is None
        assert entry.start_date is None
        assert entry.last_read_at is None

    def test_update_not_tracked(self, db_session, test_user, test_book):
        with pytest.raises(TrackingNotFoundException):
            LibraryService.update_entry(
                db_session, test_user.id, test_book.id, TrackingPatch(notes="x")
            )

    def test_update_unknown_book(self, db_session, test_user):
        with pytest.raises(BookNotFoundException):
            LibraryService.update_entry(
                db_session, test_user.id, 999, TrackingPatch(notes="x")
            )

    def test_update_survives_activity_log_failure(
        self, db_session, tracking, test_user, test_book, monkeypatch
    ):
        """The change stays committed when the activity log cannot be written."""
        real_commit = db_session.commit
        calls = []

        def commit_then_fail():
            calls.append(1)
            if len(calls) > 1:
                raise SQLAlchemyError("activity_logs is locked")
            real_commit()

        monkeypatch.setattr(db_session, "commit", commit_then_fail)

        entry = LibraryService.update_entry(
            db_session, test_user.id, test_book.id, TrackingPatch(notes="kept")
        )

        assert entry.notes == "kept"
        db_session.expire_all()
        stored = db_session.get(BookTracking, (test_user.id, test_book.id))
        assert stored.notes == "kept"
        assert _actions(db_session, test_user.id) == []
