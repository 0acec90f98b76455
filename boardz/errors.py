# Rev 0.1.0

"""Error taxonomy for the join/cascade engine (Rev 0.1.0)
Each error carries a stable string `code`, the same way service results
report outcome codes, so view models can branch without isinstance chains.
"""
from __future__ import annotations


class BoardError(Exception):
    code = "error"

    def __init__(self, message: str = "", *, path: str | None = None) -> None:
        super().__init__(message or self.code)
        self.path = path


class InvalidArgument(BoardError):
    """A required identifier or field was missing or malformed."""
    code = "invalid_argument"


class PermissionDenied(BoardError):
    """The caller may not delete another registered user's account."""
    code = "permission_denied"


class NotFound(BoardError):
    code = "not_found"


class WriteFailed(BoardError):
    """The underlying store rejected a read, write or batch commit."""
    code = "write_failed"


def is_auth_error(exc: BaseException) -> bool:
    return isinstance(exc, PermissionDenied)
