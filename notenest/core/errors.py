"""Error taxonomy shared by the policy, quota and resource layers.

Every error carries the HTTP status and a stable public message. Internal
detail (which token check failed, which row was filtered) goes to the log,
never into the message.
"""

from enum import StrEnum

from fastapi import status


class NoteNestError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def payload(self) -> dict:
        return {"success": False, "message": self.message}


class Unauthenticated(NoteNestError):
    """No token, or a token that failed verification.

    There is no revocation list: a token stays valid until it expires or the
    signing secret is rotated. Logout only discards the client copy.
    """

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid or expired token"


class DenyReason(StrEnum):
    CROSS_TENANT = "cross_tenant"
    NOT_OWNER = "not_owner"
    INSUFFICIENT_ROLE = "insufficient_role"
    TENANT_MISMATCH = "tenant_mismatch"


_DENY_MESSAGES = {
    DenyReason.CROSS_TENANT: "Access denied: Different tenant",
    DenyReason.NOT_OWNER: "Access denied: You can only access your own notes",
    DenyReason.INSUFFICIENT_ROLE: "Insufficient permissions",
    DenyReason.TENANT_MISMATCH: "Access denied: Tenant mismatch",
}


class AccessDenied(NoteNestError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, reason: DenyReason) -> None:
        self.reason = reason
        super().__init__(_DENY_MESSAGES[reason])


class LimitReached(NoteNestError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(
            f"Free plan is limited to {limit} notes. "
            "Please upgrade to Pro for unlimited notes."
        )

    def payload(self) -> dict:
        return {**super().payload(), "limitReached": True}


class NotFound(NoteNestError):
    """Absent and out-of-scope resources are reported identically."""

    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class ValidationFailure(NoteNestError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class Conflict(NoteNestError):
    status_code = status.HTTP_409_CONFLICT
    message = "Resource already exists"


class NoChangeNeeded(NoteNestError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "No change needed"
