"""
Custom domain exceptions for the application.

These exceptions are raised by the service layer and by the pure forum rules,
and converted to HTTP responses by centralized exception handlers in main.py.

The authentication module (auth.py) also uses these domain exceptions to remain
HTTP-agnostic, allowing reuse in non-HTTP contexts (CLI tools, background jobs).

Every exception carries a correlation ID so that a failed request can be found
in the logs and in Sentry.
"""

from typing import Any

from core.correlation import current_or_new_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message.
        correlation_id: Unique ID for error tracking (auto-generated if not provided).
    """

    def __init__(self, message: str, correlation_id: str | None = None):
        self.message = message
        self.correlation_id = correlation_id or current_or_new_correlation_id()
        super().__init__(self.message)

    def extra(self) -> dict[str, Any]:
        """Additional keys merged into the error response body."""
        return {}


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


# Specific exceptions for domain entities


class UserNotFoundException(NotFoundException):
    def __init__(self) -> None:
        super().__init__("User not found")


class PostNotFoundException(NotFoundException):
    def __init__(self) -> None:
        super().__init__("Post not found")


class CommentNotFoundException(NotFoundException):
    def __init__(self) -> None:
        super().__init__("Comment not found")


class TagNotFoundException(NotFoundException):
    def __init__(self) -> None:
        super().__init__("Tag not found")


class AnnouncementNotFoundException(NotFoundException):
    def __init__(self) -> None:
        super().__init__("Announcement not found")


class ReportNotFoundException(NotFoundException):
    def __init__(self) -> None:
        super().__init__("Report not found")


class UserAlreadyExistsException(ConflictException):
    """An account with this email already exists."""

    def __init__(self) -> None:
        super().__init__("User already exists with this email")


class InvalidCredentialsException(AuthenticationException):
    """Invalid email or password."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class InactiveUserException(AuthenticationException):
    """User account is deactivated."""

    def __init__(self) -> None:
        super().__init__("Account is deactivated")


class InsufficientPermissionsException(PermissionDeniedException):
    """User doesn't have sufficient permissions."""

    pass


class NotOwnerException(PermissionDeniedException):
    """Raised when a user modifies content they neither own nor administer."""

    def __init__(self, resource: str) -> None:
        super().__init__(f"Not authorized to modify this {resource}")


class PrivatePostException(PermissionDeniedException):
    """Raised when a non-owner reads or interacts with a private post."""

    def __init__(self) -> None:
        super().__init__("This post is private")


class PostLimitReachedException(PermissionDeniedException):
    """Raised when a user without gold membership exceeds the active post limit."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"You have reached the limit of {limit} posts. "
            "Upgrade to Gold membership to create unlimited posts."
        )
        self.limit = limit

    def extra(self) -> dict[str, Any]:
        return {"postLimit": True}


class AudienceRestrictedException(PermissionDeniedException):
    def __init__(self) -> None:
        super().__init__("Access denied")


class DuplicateReportException(ConflictException):
    """User has already reported this comment."""

    def __init__(self) -> None:
        super().__init__("You have already reported this comment")


class DuplicateTagException(ConflictException):
    def __init__(self, name: str) -> None:
        super().__init__(f"Tag '{name}' already exists")
        self.name = name


class AlreadyGoldMemberException(ConflictException):
    def __init__(self) -> None:
        super().__init__("User already has Gold membership")


class InvalidVoteTypeException(ValidationException):
    def __init__(self) -> None:
        super().__init__("Invalid vote type")


class InvalidModerationActionException(ValidationException):
    def __init__(self, action: str) -> None:
        super().__init__(f"Invalid moderation action: {action}")
        self.action = action


class SelfModificationException(ValidationException):
    """Raised when an admin tries to demote or deactivate their own account."""

    pass


class SessionExpiredException(AuthenticationException):
    def __init__(self) -> None:
        super().__init__("Session expired. Please log in again.")
