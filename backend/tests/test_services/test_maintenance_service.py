"""
Tests for MaintenanceService.
"""

from datetime import datetime, timedelta, timezone

from repositories.db_models import StrikeReason, StrikeSeverity, User, UserStrike
from services.maintenance_service import MaintenanceService

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def _ban(db_session, user, until=None):
    user.is_banned = True
    user.banned_until = until
    user.ban_reason = "test"
    user.banned_at = NOW - timedelta(days=10)
    db_session.commit()


def _strike(db_session, user, expires_at):
    strike = UserStrike(
        user_id=user.id,
        reason=StrikeReason.SPAM,
        severity=StrikeSeverity.MINOR,
        expires_at=expires_at,
        created_at=NOW - timedelta(days=100),
    )
    db_session.add(strike)
    db_session.commit()
    return strike


class TestReconcileExpiredBans:
    """Tests for reconcile_expired_bans"""

    def test_lifts_only_lapsed_temporary_bans(
        self, db_session, test_user, other_user, admin_user
    ):
        _ban(db_session, test_user, until=NOW - timedelta(minutes=1))
        _ban(db_session, other_user, until=NOW + timedelta(days=1))
        _ban(db_session, admin_user, until=None)

        count = MaintenanceService.reconcile_expired_bans(db_session, now=NOW)

        assert count == 1
        db_session.expire_all()
        lifted = db_session.get(User, test_user.id)
        assert lifted.is_banned is False
        assert lifted.banned_until is None
        assert lifted.ban_reason is None
        assert lifted.banned_at is None
        assert db_session.get(User, other_user.id).is_banned is True
        assert db_session.get(User, admin_user.id).is_banned is True

    def test_ban_ending_exactly_now_is_lifted(self, db_session, test_user):
        _ban(db_session, test_user, until=NOW)

        assert MaintenanceService.reconcile_expired_bans(db_session, now=NOW) == 1

    def test_nothing_to_do(self, db_session, test_user):
        assert MaintenanceService.reconcile_expired_bans(db_session, now=NOW) == 0


class TestCleanupExpiredStrikes:
    """Tests for cleanup_expired_strikes"""

    def test_deletes_expired_and_recounts(self, db_session, test_user, other_user):
        _strike(db_session, test_user, NOW - timedelta(days=1))
        _strike(db_session, test_user, NOW + timedelta(days=1))
        _strike(db_session, test_user, None)
        _strike(db_session, other_user, NOW + timedelta(days=5))
        test_user.strike_count = 3
        other_user.strike_count = 1
        db_session.commit()

        result = MaintenanceService.cleanup_expired_strikes(db_session, now=NOW)

        assert result == {"deleted_strikes": 1, "users_updated": 1}
        db_session.expire_all()
        assert db_session.get(User, test_user.id).strike_count == 2
        assert db_session.get(User, other_user.id).strike_count == 1
        assert db_session.query(UserStrike).count() == 3

    def test_recount_does_not_lift_ban(self, db_session, test_user):
        _strike(db_session, test_user, NOW - timedelta(days=1))
        test_user.strike_count = 1
        _ban(db_session, test_user, until=NOW + timedelta(days=3))

        MaintenanceService.cleanup_expired_strikes(db_session, now=NOW)

        db_session.expire_all()
        user = db_session.get(User, test_user.id)
        assert user.strike_count == 0
        assert user.is_banned is True

    def test_nothing_expired(self, db_session, test_user):
        _strike(db_session, test_user, None)

        result = MaintenanceService.cleanup_expired_strikes(db_session, now=NOW)

        assert result == {"deleted_strikes": 0, "users_updated": 0}
