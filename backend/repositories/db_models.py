"""
Database models using SQLAlchemy 2.0 style with Mapped type hints.

This module defines all database models with proper type annotations
for improved IDE support and type checking.
"""

import enum
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repositories.database import Base


class TrackingStatus(str, enum.Enum):
    """Reading status of a book in a user's library."""

    PLAN_TO_READ = "plan_to_read"
    READING = "reading"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"
    DROPPED = "dropped"


# Moderation Enums


class StrikeReason(str, enum.Enum):
    """Why a strike was issued."""

    PROFANITY = "profanity"
    HATE_SPEECH = "hate_speech"
    SPAM = "spam"
    HARASSMENT = "harassment"
    OTHER = "other"


class StrikeSeverity(str, enum.Enum):
    """How serious the violation behind a strike was."""

    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"


SEVERITY_WEIGHTS: dict[StrikeSeverity, int] = {
    StrikeSeverity.MINOR: 1,
    StrikeSeverity.MODERATE: 2,
    StrikeSeverity.SEVERE: 3,
}


class ReportReason(str, enum.Enum):
    """Why a user was reported."""

    OFFENSIVE_CONTENT = "offensive_content"
    SPAM = "spam"
    HARASSMENT = "harassment"
    OTHER = "other"


class ReportStatus(str, enum.Enum):
    """Review state of a report. Only pending reports can be reviewed."""

    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    REJECTED = "rejected"


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class User(Base):
    __tablename__ = "users"
    __table_args__ = (Index("ix_users_banned", "is_banned", "banned_until"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    username: Mapped[str] = mapped_column(
        String, unique=True, index=True, nullable=False
    )
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    is_global_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    # Ban state (bannedUntil NULL while banned = permanent)
    is_banned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    banned_until: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    ban_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    banned_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    banned_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Strike system: active strike count, denormalized from user_strikes
    strike_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_strike_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )

    # Relationships
    strikes: Mapped[List["UserStrike"]] = relationship(
        "UserStrike",
        foreign_keys="UserStrike.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    book_trackings: Mapped[List["BookTracking"]] = relationship(
        "BookTracking", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def is_permanently_banned(self) -> bool:
        return bool(self.is_banned) and self.banned_until is None


class Book(Base):
    """Catalog entry. Chapter/volume totals are unknown for ongoing series."""

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    chapters: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    volumes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cover_image: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


class BookTracking(Base):
    """A user's reading progress on one book."""

    __tablename__ = "book_tracking"
    __table_args__ = (Index("ix_book_tracking_user_status", "user_id", "status"),)

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    book_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("books.id", ondelete="CASCADE"), primary_key=True
    )
    status: Mapped[TrackingStatus] = mapped_column(
        Enum(TrackingStatus),
        default=TrackingStatus.PLAN_TO_READ,
        nullable=False,
    )
    current_chapter: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    current_volume: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rating: Mapped[Optional[Decimal]] = mapped_column(Numeric(2, 1), nullable=True)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    finish_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_read_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utc_now, onupdate=_utc_now
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="book_trackings")
    book: Mapped["Book"] = relationship("Book")


class UserStrike(Base):
    """
    Append-only log of moderation violations.

    A strike is active until expires_at passes; NULL expires_at never expires.
    """

    __tablename__ = "user_strikes"
    __table_args__ = (
        Index("ix_user_strikes_user_expires", "user_id", "expires_at"),
        Index("ix_user_strikes_created", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reason: Mapped[StrikeReason] = mapped_column(Enum(StrikeReason), nullable=False)
    severity: Mapped[StrikeSeverity] = mapped_column(
        Enum(StrikeSeverity), nullable=False
    )
    issued_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )  # NULL = automatic
    report_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    moderated_content_id: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    # Relationships
    user: Mapped["User"] = relationship(
        "User", foreign_keys=[user_id], back_populates="strikes"
    )
    issuer: Mapped[Optional["User"]] = relationship("User", foreign_keys=[issued_by])

    @property
    def is_active(self) -> bool:
        if self.expires_at is None:
            return True
        return _utc_now() < _as_utc(self.expires_at)

    @property
    def severity_weight(self) -> int:
        return SEVERITY_WEIGHTS.get(self.severity, 1)


class Report(Base):
    """A user's complaint about another user, reviewed by an administrator."""

    __tablename__ = "reports"
    __table_args__ = (
        Index("ix_reports_status_created", "status", "created_at"),
        Index("ix_reports_reporter", "reporter_id"),
        Index("ix_reports_reported_user", "reported_user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    reporter_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    reported_user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    reason: Mapped[ReportReason] = mapped_column(Enum(ReportReason), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[ReportStatus] = mapped_column(
        Enum(ReportStatus), default=ReportStatus.PENDING, nullable=False
    )
    reviewed_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    moderator_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)

    # Relationships
    reporter: Mapped["User"] = relationship("User", foreign_keys=[reporter_id])
    reported_user: Mapped["User"] = relationship(
        "User", foreign_keys=[reported_user_id]
    )
    moderator: Mapped[Optional["User"]] = relationship(
        "User", foreign_keys=[reviewed_by]
    )


class ActivityLog(Base):
    """User-facing history of library changes."""

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_user_created", "user_id", "created_at"),
        Index("ix_activity_logs_action", "action"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    # "metadata" is reserved on declarative classes
    details: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )
    resource_type: Mapped[str] = mapped_column(String(50), nullable=False)
    resource_id: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
