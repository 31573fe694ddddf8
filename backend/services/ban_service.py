"""
Service for strike accumulation and ban escalation.

Every strike bumps the user's active strike count, and the count alone decides
the enforcement action: none, warning, temporary ban, permanent ban. The
escalation is one-directional; lapsed strikes lower the counter (see
``recalculate_strike_count``) but never lift a ban on their own.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session

from helpers.time_utils import ensure_utc, format_time_remaining, utc_now
from models.config import ModerationThresholds, settings
from models.exceptions import (
    CannotBanAdminException,
    StrikeNotFoundException,
    UserNotBannedException,
    UserNotFoundException,
)
from repositories.db_models import (
    StrikeReason,
    StrikeSeverity,
    User,
    UserStrike,
)
from repositories.report_repository import ReportRepository
from repositories.strike_repository import StrikeRepository
from repositories.user_repository import UserRepository

AUTOMATIC_PERMA_BAN_REASON = "Automatic: exceeded strike limit"


class BanAction(str, enum.Enum):
    """Enforcement action taken after a strike, in increasing severity."""

    NONE = "none"
    WARNING = "warning"
    TEMP_BAN = "temp_ban"
    PERM_BAN = "perm_ban"


@dataclass(frozen=True)
class EscalationDecision:
    action: BanAction
    ban_days: Optional[int] = None


@dataclass
class BanResult:
    """Outcome of ``BanService.add_strike``."""

    success: bool
    action: BanAction
    message: str
    strike_count: int
    ban_until: Optional[datetime] = None


@dataclass
class BanStatus:
    """Effective ban state of a user at a point in time."""

    is_banned: bool
    is_permanent: bool
    ban_reason: Optional[str]
    banned_until: Optional[datetime]
    ban_time_remaining: Optional[str]
    strike_count: int


def evaluate_escalation(
    strike_count: int, thresholds: ModerationThresholds
) -> EscalationDecision:
    """
    Map an active strike count to an enforcement action.

    Checked from the most severe step down; the first match wins. Repeated
    temporary bans walk through ``temp_ban_durations`` and stay on the last one.

    Args:
        strike_count: Active strikes after the latest one was recorded
        thresholds: Escalation thresholds

    Returns:
        The action to apply, with the ban length in days for temporary bans
    """
    if strike_count >= thresholds.perma_ban_threshold:
        return EscalationDecision(BanAction.PERM_BAN)

    if strike_count >= thresholds.temp_ban_threshold:
        durations = thresholds.temp_ban_durations
        index = min(strike_count - thresholds.temp_ban_threshold, len(durations) - 1)
        return EscalationDecision(BanAction.TEMP_BAN, durations[index])

    if strike_count >= thresholds.warning_threshold:
        return EscalationDecision(BanAction.WARNING)

    return EscalationDecision(BanAction.NONE)


def effective_ban_status(user: User, now: Optional[datetime] = None) -> BanStatus:
    """
    Compute a user's ban state without writing anything.

    A temporary ban whose end date has passed is reported as lifted even if
    the row still says banned; ``BanService.check_ban_status`` and the
    expired-ban sweep persist that.

    Args:
        user: User to inspect
        now: Reference time, defaults to the current time

    Returns:
        Effective ban status
    """
    now = now or utc_now()
    banned_until = ensure_utc(user.banned_until)
    strike_count = user.strike_count or 0

    if user.is_banned and banned_until is not None and now >= banned_until:
        return BanStatus(
            is_banned=False,
            is_permanent=False,
            ban_reason=None,
            banned_until=None,
            ban_time_remaining=None,
            strike_count=strike_count,
        )

    is_banned = bool(user.is_banned)
    return BanStatus(
        is_banned=is_banned,
        is_permanent=is_banned and banned_until is None,
        ban_reason=user.ban_reason if is_banned else None,
        banned_until=banned_until if is_banned else None,
        ban_time_remaining=(
            format_time_remaining(banned_until, now) if is_banned else None
        ),
        strike_count=strike_count,
    )


class BanService:
    """Service for strikes, bans and their escalation."""

    @staticmethod
    def _get_user(db: Session, user_id: int, for_update: bool = False) -> User:
        user_repo = UserRepository(db)
        user = (
            user_repo.get_by_id_for_update(user_id)
            if for_update
            else user_repo.get_by_id(user_id)
        )
        if not user:
            raise UserNotFoundException(user_id)
        return user

    @staticmethod
    def _set_ban(
        user: User,
        banned_until: Optional[datetime],
        reason: str,
        banned_by: Optional[int],
        now: datetime,
    ) -> None:
        user.is_banned = True
        user.banned_until = banned_until
        user.ban_reason = reason
        user.banned_by = banned_by
        user.banned_at = now

    @staticmethod
    def _clear_ban(user: User) -> None:
        user.is_banned = False
        user.banned_until = None
        user.ban_reason = None
        user.banned_by = None
        user.banned_at = None

    @staticmethod
    def _apply_escalation(
        user: User,
        decision: EscalationDecision,
        thresholds: ModerationThresholds,
        now: datetime,
    ) -> BanResult:
        strike_count = user.strike_count

        if decision.action == BanAction.PERM_BAN:
            BanService._set_ban(user, None, AUTOMATIC_PERMA_BAN_REASON, None, now)
            return BanResult(
                success=True,
                action=BanAction.PERM_BAN,
                message=f"User permanently banned after {strike_count} strikes",
                strike_count=strike_count,
                ban_until=None,
            )

        if decision.action == BanAction.TEMP_BAN:
            ban_days = decision.ban_days or thresholds.temp_ban_durations[-1]
            ban_until = now + timedelta(days=ban_days)
            BanService._set_ban(
                user,
                ban_until,
                f"Automatic: {strike_count} strikes accumulated",
                None,
                now,
            )
            return BanResult(
                success=True,
                action=BanAction.TEMP_BAN,
                message=(
                    f"User temporarily banned for {ban_days} days "
                    f"after {strike_count} strikes"
                ),
                strike_count=strike_count,
                ban_until=ban_until,
            )

        if decision.action == BanAction.WARNING:
            remaining = thresholds.temp_ban_threshold - strike_count
            return BanResult(
                success=True,
                action=BanAction.WARNING,
                message=(
                    f"Warning issued. User has {strike_count} strike(s). "
                    f"{remaining} more until temporary ban."
                ),
                strike_count=strike_count,
            )

        return BanResult(
            success=True,
            action=BanAction.NONE,
            message="Strike recorded",
            strike_count=strike_count,
        )

    @staticmethod
    def add_strike(
        db: Session,
        user_id: int,
        reason: StrikeReason,
        severity: StrikeSeverity,
        issued_by: Optional[int] = None,
        report_id: Optional[str] = None,
        moderated_content_id: Optional[str] = None,
        notes: Optional[str] = None,
        thresholds: Optional[ModerationThresholds] = None,
    ) -> BanResult:
        """
        Record a strike and escalate if the new count crosses a threshold.

        The strike insert, counter update and any ban are committed together.

        Args:
            db: Database session
            user_id: ID of the user receiving the strike
            reason: Violation category
            severity: Violation severity
            issued_by: Moderator ID, None for automatic strikes
            report_id: Related report (optional)
            moderated_content_id: Related moderated content (optional)
            notes: Moderator notes (optional)
            thresholds: Escalation thresholds, defaults to settings

        Returns:
            BanResult describing the action taken

        Raises:
            UserNotFoundException: If user not found
        """
        thresholds = thresholds or settings.moderation_thresholds()
        strike_repo = StrikeRepository(db)

        try:
            user = BanService._get_user(db, user_id, for_update=True)
            now = utc_now()

            expires_at = None
            if thresholds.strike_expiration_days:
                expires_at = now + timedelta(days=thresholds.strike_expiration_days)

            strike_repo.add(
                UserStrike(
                    user_id=user_id,
                    reason=reason,
                    severity=severity,
                    issued_by=issued_by,
                    report_id=report_id,
                    moderated_content_id=moderated_content_id,
                    notes=notes,
                    expires_at=expires_at,
                    created_at=now,
                )
            )

            user.strike_count = (user.strike_count or 0) + 1
            user.last_strike_at = now

            decision = evaluate_escalation(user.strike_count, thresholds)
            result = BanService._apply_escalation(user, decision, thresholds, now)
            strike_repo.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(
            f"Strike added to user {user_id} ({reason.value}/{severity.value}): "
            f"{result.action.value}, {result.strike_count} active strike(s)"
        )
        return result

    @staticmethod
    def temp_ban(
        db: Session,
        user_id: int,
        duration_days: int,
        reason: str,
        banned_by: Optional[int],
    ) -> datetime:
        """
        Ban a user for a number of days, replacing any current ban.

        Returns:
            When the ban ends

        Raises:
            UserNotFoundException: If user not found
        """
        try:
            user = BanService._get_user(db, user_id, for_update=True)
            now = utc_now()
            banned_until = now + timedelta(days=duration_days)
            BanService._set_ban(user, banned_until, reason, banned_by, now)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"User {user_id} banned for {duration_days} days: {reason}")
        return banned_until

    @staticmethod
    def perma_ban(
        db: Session, user_id: int, reason: str, banned_by: Optional[int]
    ) -> None:
        """
        Ban a user permanently, replacing any current ban.

        Raises:
            UserNotFoundException: If user not found
        """
        try:
            user = BanService._get_user(db, user_id, for_update=True)
            BanService._set_ban(user, None, reason, banned_by, utc_now())
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"User {user_id} permanently banned: {reason}")

    @staticmethod
    def unban(db: Session, user_id: int) -> None:
        """
        Clear every ban field. Strikes are left untouched.

        Raises:
            UserNotFoundException: If user not found
        """
        try:
            user = BanService._get_user(db, user_id, for_update=True)
            BanService._clear_ban(user)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"User {user_id} unbanned")

    @staticmethod
    def ban_user(
        db: Session,
        user_id: int,
        reason: str,
        banned_by: int,
        duration_days: Optional[int] = None,
    ) -> Optional[datetime]:
        """
        Moderator ban: temporary when a duration is given, permanent otherwise.

        Returns:
            End of the ban, None for a permanent ban

        Raises:
            UserNotFoundException: If user not found
            CannotBanAdminException: If the target is an administrator
        """
        user = BanService._get_user(db, user_id)
        if user.is_global_admin:
            raise CannotBanAdminException()

        if duration_days:
            return BanService.temp_ban(db, user_id, duration_days, reason, banned_by)

        BanService.perma_ban(db, user_id, reason, banned_by)
        return None

    @staticmethod
    def lift_ban(db: Session, user_id: int) -> None:
        """
        Moderator unban.

        Raises:
            UserNotFoundException: If user not found
            UserNotBannedException: If the user is not banned
        """
        user = BanService._get_user(db, user_id)
        if not user.is_banned:
            raise UserNotBannedException(user_id)
        BanService.unban(db, user_id)

    @staticmethod
    def check_ban_status(db: Session, user_id: int) -> BanStatus:
        """
        Get a user's ban status, lifting a lapsed temporary ban on the way.

        Args:
            db: Database session
            user_id: ID of user

        Returns:
            Effective ban status

        Raises:
            UserNotFoundException: If user not found
        """
        user = BanService._get_user(db, user_id)
        status = effective_ban_status(user)

        if user.is_banned and not status.is_banned:
            BanService.unban(db, user_id)
            logger.info(f"Temporary ban of user {user_id} expired, lifted on read")

        return status

    @staticmethod
    def get_moderation_summary(db: Session, user_id: int) -> dict:
        """
        Moderation overview of a user for administrators.

        Uses the computed ban view, so looking at a user never lifts a ban.

        Raises:
            UserNotFoundException: If user not found
        """
        user = BanService._get_user(db, user_id)
        strike_repo = StrikeRepository(db)
        now = utc_now()
        return {
            "user": user,
            "email": user.email,
            "is_global_admin": user.is_global_admin,
            "last_strike_at": user.last_strike_at,
            "banned_at": user.banned_at,
            "banned_by": user.banned_by,
            "ban_status": effective_ban_status(user, now),
            "active_strikes": strike_repo.count_active_for_user(user_id, now),
            "total_strikes": len(strike_repo.get_all_for_user(user_id)),
            "reports_against": ReportRepository(db).count_against_user(user_id),
        }

    @staticmethod
    def get_active_strikes(db: Session, user_id: int) -> list[UserStrike]:
        """
        Get a user's unexpired strikes, newest first.

        Raises:
            UserNotFoundException: If user not found
        """
        BanService._get_user(db, user_id)
        return StrikeRepository(db).get_active_for_user(user_id, utc_now())

    @staticmethod
    def get_all_strikes(db: Session, user_id: int) -> list[UserStrike]:
        """
        Get every strike of a user, expired included, newest first.

        Raises:
            UserNotFoundException: If user not found
        """
        BanService._get_user(db, user_id)
        return StrikeRepository(db).get_all_for_user(user_id)

    @staticmethod
    def recalculate_strike_count(db: Session, user_id: int) -> int:
        """
        Resynchronize the strike counter with the active strikes.

        Does not re-run escalation: a lower count never lifts a ban.

        Returns:
            The new active strike count

        Raises:
            UserNotFoundException: If user not found
        """
        try:
            user = BanService._get_user(db, user_id, for_update=True)
            count = StrikeRepository(db).count_active_for_user(user_id, utc_now())
            user.strike_count = count
            db.commit()
        except Exception:
            db.rollback()
            raise

        return count

    @staticmethod
    def remove_strike(db: Session, strike_id: int, user_id: int) -> None:
        """
        Delete one strike of a user and recount.

        Raises:
            UserNotFoundException: If user not found
            StrikeNotFoundException: If the strike is not the user's
        """
        strike_repo = StrikeRepository(db)

        try:
            user = BanService._get_user(db, user_id, for_update=True)
            strike = strike_repo.get_for_user(strike_id, user_id)
            if not strike:
                raise StrikeNotFoundException(strike_id)

            strike_repo.delete(strike)
            strike_repo.flush()
            user.strike_count = strike_repo.count_active_for_user(user_id, utc_now())
            strike_repo.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(
            f"Strike {strike_id} removed from user {user_id}, "
            f"{user.strike_count} active strike(s) left"
        )

    @staticmethod
    def clear_all_strikes(db: Session, user_id: int) -> None:
        """
        Delete every strike of a user and reset the counter.

        Raises:
            UserNotFoundException: If user not found
        """
        strike_repo = StrikeRepository(db)

        try:
            user = BanService._get_user(db, user_id, for_update=True)
            deleted = strike_repo.delete_all_for_user(user_id)
            user.strike_count = 0
            user.last_strike_at = None
            strike_repo.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Cleared {deleted} strike(s) from user {user_id}")
