from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
import jwt
from sqlalchemy.orm import Session

import models.schemas as schemas
import repositories.db_models as db_models
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    InactiveUserException,
    InsufficientPermissionsException,
    UserBannedException,
)
from repositories.database import get_db
from repositories.user_repository import UserRepository
from services.ban_service import BanService

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=15)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM
    )
    return encoded_jwt


def authenticate_user(db: Session, email: str, password: str) -> db_models.User | None:
    user = UserRepository(db).get_by_email(email)
    if not user:
        return None
    if not verify_password(password, str(user.hashed_password)):
        return None
    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> db_models.User:
    """
    Get the current authenticated user from the JWT token.

    Raises:
        AuthenticationException: If credentials are invalid or user not found.
    """
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        email_value = payload.get("sub")
        if email_value is None:
            raise AuthenticationException("Could not validate credentials")
        email: str = str(email_value)
        token_data = schemas.TokenData(email=email)
    except jwt.exceptions.InvalidTokenError:
        raise AuthenticationException("Could not validate credentials")

    user = UserRepository(db).get_by_email(str(token_data.email))
    if user is None:
        raise AuthenticationException("Could not validate credentials")
    return user


async def get_current_active_user(
    current_user: db_models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> db_models.User:
    """
    Get the current active user and verify they are not banned.

    A temporary ban that has run out is lifted here.

    Raises:
        InactiveUserException: If the user account has been deactivated.
        UserBannedException: If the user is currently banned.
    """
    if not bool(current_user.is_active):
        raise InactiveUserException("Account has been deactivated")

    ban_status = BanService.check_ban_status(db, int(current_user.id))
    if ban_status.is_banned:
        raise UserBannedException(
            expires_at=ban_status.banned_until,
            reason=ban_status.ban_reason,
            time_remaining=ban_status.ban_time_remaining,
        )

    return current_user


async def get_admin_user(
    current_user: db_models.User = Depends(get_current_active_user),
) -> db_models.User:
    """
    Require global admin permissions.

    Raises:
        InsufficientPermissionsException: If user is not a global admin.
    """
    if not bool(current_user.is_global_admin):
        raise InsufficientPermissionsException("Not enough permissions")
    return current_user
