"""
Custom domain exceptions for the application.

These exceptions are raised by the service layer and converted to HTTP exceptions
by centralized exception handlers in main.py, maintaining proper separation of concerns.

The authentication module (auth.py) also uses these domain exceptions to remain
HTTP-agnostic, allowing reuse in non-HTTP contexts (CLI tools, background tasks).
"""

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


class ConflictException(DomainException):
    """Raised when operation conflicts with existing data."""

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


class UnavailableException(DomainException):
    """
    Raised when the storage layer cannot serve the request.

    Safe to retry: nothing was committed.
    """

    def __init__(
        self, message: str = "Service temporarily unavailable. Please retry."
    ):
        super().__init__(message)


# Specific exceptions for domain entities


class UserNotFoundException(NotFoundException):
    """User not found."""

    pass


class ContentNotFoundException(NotFoundException):
    """Content item not found."""

    pass


class CommentNotFoundException(NotFoundException):
    """Comment not found."""

    pass


class GroupNotFoundException(NotFoundException):
    """Group not found."""

    pass


class InvalidCredentialsException(AuthenticationException):
    """Invalid email or password."""

    pass


class InactiveUserException(PermissionDeniedException):
    """User account is inactive."""

    pass


class InsufficientPermissionsException(PermissionDeniedException):
    """User doesn't have sufficient permissions."""

    pass


class ContentValidationException(ValidationException):
    """Content validation failed."""

    pass


# ============================================================================
# Engagement Exceptions
# ============================================================================


class InvalidContentTypeException(ValidationException):
    """Raised when a content type tag is not one of the known types."""

    def __init__(self, content_type: str):
        super().__init__(f"Invalid content type: {content_type}")
        self.content_type = content_type


class InvalidActionTypeException(ValidationException):
    """Raised when an engagement action is unknown or not allowed for the target."""

    def __init__(self, action: str, reason: str | None = None):
        message = f"Invalid action type: {action}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.action = action


# ============================================================================
# Visibility Exceptions
# ============================================================================


class VisibilityDeniedException(PermissionDeniedException):
    """
    Raised when the visibility evaluator denies access.

    The reason code is stable so clients can pick a prompt
    ("join the club", "follow to see"). Private, blocked and unknown
    policies share a generic message.
    """

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


class GroupPermissionDeniedException(PermissionDeniedException):
    """Raised when a member lacks a group permission (post, comment, ...)."""

    def __init__(self, permission: str):
        super().__init__(f"Permission denied: {permission} not allowed")
        self.permission = permission


# ============================================================================
# Relationship Exceptions
# ============================================================================


class SelfFollowException(ValidationException):
    """Raised when a user targets themselves with a relationship action."""

    def __init__(self, message: str = "Users cannot follow themselves"):
        super().__init__(message)


class UserBlockedException(PermissionDeniedException):
    """Raised when the target user has blocked the requesting user."""

    def __init__(self, message: str = "Action not allowed"):
        super().__init__(message)


class MembershipBannedException(PermissionDeniedException):
    """Raised when a banned member tries to rejoin a group."""

    def __init__(self, message: str = "You are banned from this group"):
        super().__init__(message)
