"""
Authentication Service

Handles authentication business logic including login and token management.
"""

from datetime import timedelta

from loguru import logger
from sqlalchemy.orm import Session

import models.schemas as schemas
from authentication.auth import authenticate_user, create_access_token
from models.config import settings
from models.exceptions import InactiveUserException, InvalidCredentialsException


class AuthService:
    """Service for authentication business logic."""

    @staticmethod
    def login(db: Session, email: str, password: str) -> schemas.Token:
        """
        Authenticate a user and create an access token.

        Banned users can still log in; their ban is enforced on every
        authenticated request so they can read why and until when.

        Args:
            db: Database session
            email: User email
            password: User password

        Returns:
            Token object with access_token and token_type

        Raises:
            InvalidCredentialsException: If email or password is incorrect
            InactiveUserException: If the account has been deactivated
        """
        user = authenticate_user(db, email, password)
        if not user:
            logger.info("Failed login attempt")
            raise InvalidCredentialsException("Incorrect email or password")

        if not bool(user.is_active):
            raise InactiveUserException("Account has been deactivated")

        access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        access_token = create_access_token(
            data={"sub": str(user.email)}, expires_delta=access_token_expires
        )
        # nosec B106: "bearer" is OAuth2 token type, not a password
        return schemas.Token(access_token=access_token, token_type="bearer")  # nosec B106
