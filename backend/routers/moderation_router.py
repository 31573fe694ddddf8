"""
Router for admin moderation endpoints: strikes, bans and report review.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from core import scheduler
from helpers.pagination import PaginationLimitLarge, PaginationSkip
from repositories.database import get_db
from services.ban_service import BanService
from services.report_service import ReportService

router = APIRouter(prefix="/admin/moderation", tags=["admin-moderation"])


@router.get("/users/{user_id}", response_model=schemas.UserModerationSummary)
def get_user_moderation_summary(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> dict:
    """Get a user's ban state and strike counts."""
    return BanService.get_moderation_summary(db, user_id)


# ============================================================================
# Strike Endpoints
# ============================================================================


@router.get(
    "/users/{user_id}/strikes", response_model=list[schemas.StrikeResponse]
)
def get_user_strikes(
    user_id: int,
    active_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> list:
    """Get a user's strikes, newest first. Expired strikes are included by default."""
    if active_only:
        return BanService.get_active_strikes(db, user_id)
    return BanService.get_all_strikes(db, user_id)


@router.post("/users/{user_id}/strikes", response_model=schemas.BanResultResponse)
def add_strike(
    user_id: int,
    strike_data: schemas.StrikeCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> schemas.BanResultResponse:
    """
    Issue a strike to a user.

    Crossing a threshold warns, temporarily bans or permanently bans the user.
    """
    admin_id: int = current_user.id  # type: ignore[assignment]
    result = BanService.add_strike(
        db,
        user_id,
        reason=strike_data.reason,
        severity=strike_data.severity,
        issued_by=admin_id,
        report_id=strike_data.report_id,
        moderated_content_id=strike_data.moderated_content_id,
        notes=strike_data.notes,
    )
    return schemas.BanResultResponse.model_validate(result)


@router.post(
    "/users/{user_id}/strikes/recalculate",
    response_model=schemas.StrikeCountResponse,
)
def recalculate_strikes(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> dict:
    """Resynchronize the strike counter with the active strikes."""
    count = BanService.recalculate_strike_count(db, user_id)
    return {"user_id": user_id, "strike_count": count}


@router.delete("/users/{user_id}/strikes/{strike_id}")
def remove_strike(
    user_id: int,
    strike_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> dict:
    """Remove one strike from a user."""
    BanService.remove_strike(db, strike_id, user_id)
    return {"message": "Strike removed successfully"}


@router.delete("/users/{user_id}/strikes")
def clear_strikes(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> dict:
    """Remove every strike from a user."""
    BanService.clear_all_strikes(db, user_id)
    return {"message": "All strikes cleared successfully"}


# ============================================================================
# Ban Endpoints
# ============================================================================


@router.post("/users/{user_id}/ban", response_model=schemas.BanResponse)
def ban_user(
    user_id: int,
    ban_data: schemas.BanRequest,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> dict:
    """Ban a user, temporarily when duration_days is given, otherwise permanently."""
    admin_id: int = current_user.id  # type: ignore[assignment]
    banned_until = BanService.ban_user(
        db,
        user_id,
        reason=ban_data.reason,
        banned_by=admin_id,
        duration_days=ban_data.duration_days,
    )
    return {
        "user_id": user_id,
        "is_permanent": banned_until is None,
        "banned_until": banned_until,
    }


@router.post("/users/{user_id}/unban")
def unban_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> dict:
    """Lift a user's ban. Strikes are kept."""
    BanService.lift_ban(db, user_id)
    return {"message": "User unbanned successfully"}


# ============================================================================
# Report Review Endpoints
# ============================================================================


@router.get("/reports/pending", response_model=list[schemas.ReportDetailResponse])
def get_pending_reports(
    skip: PaginationSkip = 0,
    limit: PaginationLimitLarge = 50,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> list:
    """Get reports awaiting review, oldest first."""
    return ReportService.get_pending_reports(db, skip=skip, limit=limit)


@router.post(
    "/reports/{report_id}/review", response_model=schemas.ReportReviewResponse
)
def review_report(
    report_id: int,
    review_data: schemas.ReportReview,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> schemas.ReportReviewResponse:
    """
    Review a pending report.

    The action warns (one strike), temporarily bans (7 days unless ban_days is
    given) or permanently bans the reported user.
    """
    admin_id: int = current_user.id  # type: ignore[assignment]
    result = ReportService.review_report(
        db,
        report_id,
        reviewer_id=admin_id,
        status=review_data.status,
        action=review_data.action,
        moderator_notes=review_data.moderator_notes,
        ban_days=review_data.ban_days,
    )
    return schemas.ReportReviewResponse.model_validate(result)


# ============================================================================
# Background Jobs
# ============================================================================


@router.get("/scheduler", response_model=schemas.SchedulerStatusResponse)
def get_scheduler_status(
    current_user: db_models.User = Depends(auth.get_admin_user),
) -> dict:
    """Get the moderation scheduler status and its next runs."""
    return scheduler.get_scheduler_status()
