"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    OWNER_PROTECTED = "OWNER_PROTECTED"
    SELF_MEMBERSHIP = "SELF_MEMBERSHIP"
    NO_WORKSPACE_ACCESS = "NO_WORKSPACE_ACCESS"

    # Not found errors (404)
    USER_NOT_FOUND = "USER_NOT_FOUND"
    WORKSPACE_NOT_FOUND = "WORKSPACE_NOT_FOUND"
    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"
    INVITATION_NOT_FOUND = "INVITATION_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_ROLE = "INVALID_ROLE"
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_INVITATION_TOKEN = "INVALID_INVITATION_TOKEN"
    INVITATION_EMAIL_MISMATCH = "INVITATION_EMAIL_MISMATCH"

    # Conflict errors (409)
    WORKSPACE_SLUG_TAKEN = "WORKSPACE_SLUG_TAKEN"
    ALREADY_A_MEMBER = "ALREADY_A_MEMBER"
    DUPLICATE_INVITATION = "DUPLICATE_INVITATION"
    INVITATION_ALREADY_ACCEPTED = "INVITATION_ALREADY_ACCEPTED"

    # Expired (410)
    INVITATION_EXPIRED = "INVITATION_EXPIRED"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(
        self,
        message: str = "Access denied",
        error_code: ErrorCode = ErrorCode.FORBIDDEN,
        details: Any | None = None,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=403,
            details=details,
        )


class NotAMemberError(AuthorizationError):
    """User is not an active member of the workspace."""

    def __init__(self, workspace_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOT_A_MEMBER,
            message="You are not a member of this workspace",
            details={"workspace_id": workspace_id},
        )


class InsufficientPermissionsError(AuthorizationError):
    """User's role does not grant the requested operation."""

    def __init__(self, required: str = "ADMIN") -> None:
        super().__init__(
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            message=f"Insufficient permissions. Required: {required}",
            details={"required": required},
        )


class OwnerProtectedError(AuthorizationError):
    """The workspace owner's membership cannot be changed or removed."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.OWNER_PROTECTED,
            message="Cannot modify the workspace owner",
        )


class SelfMembershipError(AuthorizationError):
    """Members cannot manage their own membership through the admin path."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.SELF_MEMBERSHIP,
            message="You cannot modify your own membership; leave the workspace instead",
        )


class NoWorkspaceAccessError(AuthorizationError):
    """User has no active membership in any active workspace."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.NO_WORKSPACE_ACCESS,
            message="You do not have access to any workspace",
        )


class UserNotFoundError(AppException):
    """User not found."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.USER_NOT_FOUND,
            message=f"User not found: {user_id}",
            status_code=404,
            details={"user_id": user_id},
        )


class WorkspaceNotFoundError(AppException):
    """Workspace not found."""

    def __init__(self, workspace_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.WORKSPACE_NOT_FOUND,
            message=f"Workspace not found: {workspace_id}",
            status_code=404,
            details={"workspace_id": workspace_id},
        )


class MemberNotFoundError(AppException):
    """Membership not found."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.MEMBER_NOT_FOUND,
            message="User is not a member of this workspace",
            status_code=404,
            details={"user_id": user_id},
        )


class InvitationNotFoundError(AppException):
    """Invitation not found."""

    def __init__(self, invitation_id: str = "") -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_NOT_FOUND,
            message="Invitation not found",
            status_code=404,
            details={"invitation_id": invitation_id} if invitation_id else None,
        )


class InvalidRoleError(AppException):
    """Role value is not one of the known workspace roles."""

    def __init__(self, role: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_ROLE,
            message=f"Invalid role: {role}",
            status_code=400,
            details={"role": role},
        )


class InvalidEmailError(AppException):
    """Email address is malformed."""

    def __init__(self, email: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_EMAIL,
            message="Invalid email address",
            status_code=400,
            details={"email": email},
        )


class InvalidInvitationTokenError(AppException):
    """Invitation token is unknown or malformed."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_INVITATION_TOKEN,
            message="Invalid or expired invitation",
            status_code=400,
        )


class InvitationEmailMismatchError(AppException):
    """The submitted email does not match the invitation email."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_EMAIL_MISMATCH,
            message="Email does not match the invitation",
            status_code=400,
        )


class WorkspaceSlugTakenError(AppException):
    """Workspace slug is already taken."""

    def __init__(self, slug: str) -> None:
        super().__init__(
            error_code=ErrorCode.WORKSPACE_SLUG_TAKEN,
            message=f"Workspace slug already taken: {slug}",
            status_code=409,
            details={"slug": slug},
        )


class AlreadyAMemberError(AppException):
    """User is already a member of the workspace."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ALREADY_A_MEMBER,
            message="User is already a member of this workspace",
            status_code=409,
            details={"user_id": user_id},
        )


class DuplicateInvitationError(AppException):
    """A pending invitation already exists for this email and workspace."""

    def __init__(self, email: str) -> None:
        super().__init__(
            error_code=ErrorCode.DUPLICATE_INVITATION,
            message="A pending invitation already exists for this email",
            status_code=409,
            details={"email": email},
        )


class InvitationAlreadyAcceptedError(AppException):
    """Invitation has already been accepted."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_ALREADY_ACCEPTED,
            message="This invitation has already been accepted",
            status_code=409,
        )


class InvitationExpiredError(AppException):
    """Invitation has expired."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.INVITATION_EXPIRED,
            message="Invitation has expired. Please request a new one.",
            status_code=410,
        )


class RateLimitExceededError(AppException):
    """Caller exceeded an application-level rate limit."""

    def __init__(self, scope: str, retry_after: int) -> None:
        super().__init__(
            error_code=ErrorCode.RATE_LIMIT_EXCEEDED,
            message=f"Too many {scope} attempts, try again later",
            status_code=429,
            details={"scope": scope, "retry_after": retry_after},
        )
