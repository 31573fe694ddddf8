from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from repositories.db_models import (
    ReportReason,
    ReportStatus,
    StrikeReason,
    StrikeSeverity,
    TrackingStatus,
)
from services.ban_service import BanAction
from services.report_service import ReportAction


# User Schemas
class UserLogin(BaseModel):
    email: EmailStr
    password: str


class User(BaseModel):
    id: int
    email: EmailStr
    username: str
    display_name: str
    is_global_admin: bool
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserPublic(BaseModel):
    """Public user profile (visible to others)."""

    id: int
    username: str
    display_name: str

    model_config = ConfigDict(from_attributes=True)


# Token Schemas
class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    email: Optional[str] = None


# ============================================================================
# Library Schemas
# ============================================================================


class Book(BaseModel):
    id: int
    title: str
    type: Optional[str] = None
    chapters: Optional[int] = None
    volumes: Optional[int] = None
    cover_image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class LibraryEntry(BaseModel):
    """A book in the user's library with its reading progress."""

    book_id: int
    status: TrackingStatus
    current_chapter: Optional[int] = None
    current_volume: Optional[int] = None
    rating: Optional[float] = None
    start_date: Optional[date] = None
    finish_date: Optional[date] = None
    notes: Optional[str] = None
    last_read_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    book: Book

    model_config = ConfigDict(from_attributes=True)


class LibraryPage(BaseModel):
    """Paginated library response with total count."""

    items: List[LibraryEntry]
    total: int
    skip: int
    limit: int


class LibraryEntryCreate(BaseModel):
    status: TrackingStatus = TrackingStatus.PLAN_TO_READ


class LibraryEntryUpdate(BaseModel):
    """
    Partial update of a library entry.

    Only fields present in the request body are applied. A rating of 0
    clears the rating; so does null.
    """

    rating: Optional[Decimal] = Field(None, ge=0, le=5, decimal_places=1)
    notes: Optional[str] = Field(None, max_length=5000)
    current_chapter: Optional[int] = Field(None, ge=0)
    current_volume: Optional[int] = Field(None, ge=0)
    status: Optional[TrackingStatus] = None

    @field_validator("status")
    @classmethod
    def status_not_null(cls, v: Optional[TrackingStatus]) -> TrackingStatus:
        if v is None:
            raise ValueError("status cannot be null")
        return v


class ActivityLogEntry(BaseModel):
    id: int
    action: str
    details: dict[str, Any]
    resource_type: str
    resource_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityLogPage(BaseModel):
    items: List[ActivityLogEntry]
    total: int
    skip: int
    limit: int


# ============================================================================
# Moderation Schemas
# ============================================================================


class StrikeCreate(BaseModel):
    """Schema for issuing a strike."""

    reason: StrikeReason
    severity: StrikeSeverity
    notes: Optional[str] = Field(None, max_length=2000)
    report_id: Optional[str] = Field(None, max_length=64)
    moderated_content_id: Optional[str] = Field(None, max_length=64)


class StrikeResponse(BaseModel):
    """Schema for strike response."""

    id: int
    user_id: int
    reason: StrikeReason
    severity: StrikeSeverity
    issued_by: Optional[int] = None
    issuer: Optional[UserPublic] = None
    report_id: Optional[str] = None
    moderated_content_id: Optional[str] = None
    notes: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: datetime
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class BanResultResponse(BaseModel):
    """Outcome of issuing a strike."""

    success: bool
    action: BanAction
    message: str
    strike_count: int
    ban_until: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BanStatusResponse(BaseModel):
    is_banned: bool
    is_permanent: bool
    ban_reason: Optional[str] = None
    banned_until: Optional[datetime] = None
    ban_time_remaining: Optional[str] = None
    strike_count: int

    model_config = ConfigDict(from_attributes=True)


class BanRequest(BaseModel):
    """Moderator ban. Temporary when duration_days is set, permanent otherwise."""

    reason: str = Field(..., min_length=3, max_length=500)
    duration_days: Optional[int] = Field(None, ge=1, le=3650)


class BanResponse(BaseModel):
    user_id: int
    is_permanent: bool
    banned_until: Optional[datetime] = None


class StrikeCountResponse(BaseModel):
    user_id: int
    strike_count: int


class UserModerationSummary(BaseModel):
    """Moderation view of a user (admin)."""

    user: UserPublic
    email: EmailStr
    is_global_admin: bool
    last_strike_at: Optional[datetime] = None
    banned_at: Optional[datetime] = None
    banned_by: Optional[int] = None
    ban_status: BanStatusResponse
    active_strikes: int
    total_strikes: int
    reports_against: int


class SchedulerJobStatus(BaseModel):
    id: str
    name: str
    next_run_time: Optional[str] = None


class SchedulerStatusResponse(BaseModel):
    running: bool
    jobs: List[SchedulerJobStatus]


# ============================================================================
# Report Schemas
# ============================================================================


class ReportCreate(BaseModel):
    """Schema for reporting a user."""

    reported_user_id: int
    reason: ReportReason
    description: Optional[str] = Field(None, max_length=1000)


class ReportResponse(BaseModel):
    """Schema for report response."""

    id: int
    reporter_id: int
    reported_user_id: int
    reason: ReportReason
    description: Optional[str] = None
    status: ReportStatus
    reviewed_by: Optional[int] = None
    moderator_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReportDetailResponse(ReportResponse):
    """Report with both parties, for the review queue (admin)."""

    reporter: UserPublic
    reported_user: UserPublic


class ReportPage(BaseModel):
    items: List[ReportResponse]
    total: int
    skip: int
    limit: int


class ReportReview(BaseModel):
    """Schema for reviewing a report (admin)."""

    status: ReportStatus
    action: ReportAction = ReportAction.NONE
    moderator_notes: Optional[str] = Field(None, max_length=1000)
    ban_days: Optional[int] = Field(None, ge=1, le=365)

    @field_validator("status")
    @classmethod
    def status_must_close_report(cls, v: ReportStatus) -> ReportStatus:
        if v == ReportStatus.PENDING:
            raise ValueError("A review must move the report out of pending")
        return v


class ReportReviewResponse(BaseModel):
    """Outcome of a report review."""

    report: ReportResponse
    action: ReportAction
    strike: Optional[BanResultResponse] = None
    ban_days: Optional[int] = None
    banned_until: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
