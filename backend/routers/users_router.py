"""User router endpoints for the current user's own account state."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimitLarge, PaginationSkip
from repositories.database import get_db
from services.activity_logger import ActivityLogger
from services.ban_service import BanService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me/ban-status", response_model=schemas.BanStatusResponse)
def get_my_ban_status(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_user),
) -> schemas.BanStatusResponse:
    """
    Get the current user's ban status and strike count.

    Reachable while banned, so a suspended user can see why and for how long.
    """
    user_id: int = current_user.id  # type: ignore[assignment]
    ban_status = BanService.check_ban_status(db, user_id)
    return schemas.BanStatusResponse.model_validate(ban_status)


@router.get("/me/activity", response_model=schemas.ActivityLogPage)
def get_my_activity(
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
    skip: PaginationSkip = 0,
    limit: PaginationLimitLarge = 50,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> dict:
    """Get the current user's activity history, newest first."""
    user_id: int = current_user.id  # type: ignore[assignment]
    items, total = ActivityLogger.get_user_history(
        db,
        user_id,
        action=action,
        resource_type=resource_type,
        skip=skip,
        limit=limit,
    )
    return {"items": items, "total": total, "skip": skip, "limit": limit}
