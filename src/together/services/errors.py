"""Error taxonomy for verification and credential recovery.

Callers outside the service layer should only ever show the generic
messages below. The concrete classes exist for logging and status mapping.
"""

# User-facing messages
INVALID_CODE_MESSAGE = "코드가 올바르지 않거나 만료되었습니다"
INVALID_REQUEST_MESSAGE = "유효하지 않은 요청입니다"


class RecoveryError(Exception):
    """Base error for the verification and recovery services."""

    pass


class ValidationError(RecoveryError):
    """Malformed target, code, or credential; rejected before storage."""

    pass


class RateLimitedError(RecoveryError):
    """A code for the same target and purpose was issued too recently."""

    def __init__(self, message: str, retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after


class NotFoundError(RecoveryError):
    """No matchable active code.

    Covers never issued, already consumed, expired and attempt-exhausted codes.
    """

    pass


class CodeMismatchError(NotFoundError):
    """A wrong code was submitted against an active record."""

    pass


class InvalidTokenError(RecoveryError):
    """Reset token is absent, expired, or already redeemed."""

    pass


class StorageError(RecoveryError):
    """Transient database or cache failure. Safe to retry."""

    pass
