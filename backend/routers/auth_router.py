"""Authentication router endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.rate_limiter import limiter
from repositories.database import get_db
from services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=schemas.Token)
@limiter.limit("5/minute")
def login(
    request: Request,
    credentials: schemas.UserLogin,
    db: Session = Depends(get_db),
) -> schemas.Token:
    """
    Login user. Rate limited to 5 per minute.

    Domain exceptions are caught by centralized exception handlers.
    """
    return AuthService.login(db, credentials.email, credentials.password)


@router.get("/me", response_model=schemas.User)
async def read_users_me(
    current_user: db_models.User = Depends(auth.get_current_active_user),
) -> db_models.User:
    """Get current user."""
    return current_user
