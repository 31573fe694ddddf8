"""
Custom domain exceptions for the application.

These exceptions are raised by the service layer and converted to HTTP exceptions
by centralized exception handlers in main.py, maintaining proper separation of concerns.

The authentication module (auth.py) and the maintenance tasks also use these
domain exceptions, so the services stay usable outside of a request.

Every exception carries a correlation ID for Sentry and user error reporting.
"""

from datetime import datetime

from core.correlation import generate_correlation_id, get_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message.
        correlation_id: Unique ID for error tracking (auto-generated if not provided).
    """

    def __init__(self, message: str, correlation_id: str | None = None):
        self.message = message
        # Use request correlation ID if available, otherwise generate new one
        self.correlation_id = (
            correlation_id or get_correlation_id() or generate_correlation_id()
        )
        super().__init__(self.message)


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    pass


class PermissionDeniedException(DomainException):
    """Raised when user lacks required permissions."""

    pass


class ValidationException(DomainException):
    """Raised when input validation fails."""

    pass


class AuthenticationException(DomainException):
    """Raised when authentication fails."""

    pass


class AlreadyExistsException(DomainException):
    """Raised when trying to create a resource that already exists."""

    pass


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    pass


# Specific exceptions for domain entities


class UserNotFoundException(NotFoundException):
    """User not found."""

    def __init__(self, user_id: int):
        super().__init__(f"User with ID {user_id} not found")
        self.user_id = user_id


class BookNotFoundException(NotFoundException):
    """Book not found."""

    def __init__(self, book_id: int):
        super().__init__(f"Book with ID {book_id} not found")
        self.book_id = book_id


class TrackingNotFoundException(NotFoundException):
    """Book is not in the user's library."""

    def __init__(self, book_id: int):
        super().__init__(f"Book {book_id} is not in your library")
        self.book_id = book_id


class TrackingAlreadyExistsException(AlreadyExistsException):
    """Book is already in the user's library."""

    def __init__(self, book_id: int):
        super().__init__(f"Book {book_id} is already in your library")
        self.book_id = book_id


class InvalidCredentialsException(AuthenticationException):
    """Invalid email or password."""

    def __init__(self, message: str = "Incorrect email or password"):
        super().__init__(message)


class InactiveUserException(PermissionDeniedException):
    """User account is inactive."""

    pass


class InsufficientPermissionsException(PermissionDeniedException):
    """User doesn't have sufficient permissions."""

    pass


# ============================================================================
# Moderation Exceptions
# ============================================================================


class StrikeNotFoundException(NotFoundException):
    """Raised when a strike does not exist or belongs to another user."""

    def __init__(self, strike_id: int):
        super().__init__(f"Strike with ID {strike_id} not found")
        self.strike_id = strike_id


class CannotBanAdminException(BusinessRuleException):
    """Raised when a moderator tries to ban an administrator."""

    def __init__(self, message: str = "Cannot ban an admin user"):
        super().__init__(message)


class UserNotBannedException(BusinessRuleException):
    """Raised when unbanning a user that is not banned."""

    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} is not banned")
        self.user_id = user_id


class ReportNotFoundException(NotFoundException):
    """Report not found."""

    def __init__(self, report_id: int):
        super().__init__(f"Report with ID {report_id} not found")
        self.report_id = report_id


class CannotReportSelfException(BusinessRuleException):
    """Raised when a user reports their own account."""

    def __init__(self, message: str = "Cannot report yourself"):
        super().__init__(message)


class DuplicateReportException(BusinessRuleException):
    """Raised when the reporter already has a pending report on the same user."""

    def __init__(self, message: str = "You have already reported this user"):
        super().__init__(message)


class ReportAlreadyReviewedException(BusinessRuleException):
    """Raised when a report is reviewed, or withdrawn, after its review."""

    def __init__(self, message: str = "This report has already been reviewed"):
        super().__init__(message)


class UserBannedException(DomainException):
    """Raised when banned user tries to perform restricted action."""

    def __init__(
        self,
        expires_at: datetime | None = None,
        reason: str | None = None,
        time_remaining: str | None = None,
    ):
        if expires_at:
            message = (
                f"Your account is temporarily suspended until {expires_at.isoformat()}"
            )
        else:
            message = "Your account has been permanently suspended"
        super().__init__(message)
        self.expires_at = expires_at
        self.reason = reason or "Violation of community guidelines"
        self.time_remaining = time_remaining

    @property
    def is_permanent(self) -> bool:
        return self.expires_at is None
