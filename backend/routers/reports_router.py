"""
Router for user report endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationSkip
from repositories.database import get_db
from services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post(
    "", response_model=schemas.ReportResponse, status_code=status.HTTP_201_CREATED
)
def create_report(
    report_data: schemas.ReportCreate,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.Report:
    """
    Report another user.

    One pending report per reporter and reported user.

    Domain exceptions are caught by centralized exception handlers.
    """
    user_id: int = current_user.id  # type: ignore[assignment]
    return ReportService.create_report(
        db,
        reporter_id=user_id,
        reported_user_id=report_data.reported_user_id,
        reason=report_data.reason,
        description=report_data.description,
    )


@router.get("/my-reports", response_model=schemas.ReportPage)
def get_my_reports(
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 20,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict:
    """Get reports submitted by the current user, newest first."""
    user_id: int = current_user.id  # type: ignore[assignment]
    items, total = ReportService.get_my_reports(db, user_id, skip=skip, limit=limit)
    return {"items": items, "total": total, "skip": skip, "limit": limit}


@router.delete("/{report_id}")
def delete_report(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict[str, str]:
    """Withdraw one of the current user's reports while it is still pending."""
    user_id: int = current_user.id  # type: ignore[assignment]
    ReportService.delete_report(db, report_id, user_id)
    return {"message": "Report deleted successfully"}
