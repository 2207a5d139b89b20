"""
Application error types.

Services raise these; the handlers registered in ``app.main`` turn them
into ``{"error": "<message>"}`` responses with the matching status code.
"""
from fastapi import status


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"<{type(self).__name__}({self.message!r})>"


class InvalidInput(AppError):
    """Validation, enum membership, missing fields, out-of-range values."""
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(AppError):
    """Missing, malformed, invalid or expired credentials."""
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(AppError):
    """Authenticated but not allowed (non-member, blocked pair, non-admin)."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(AppError):
    """Unknown user, match, block, photo or report."""
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(AppError):
    """Duplicate like, duplicate unresolved report, email already registered."""
    status_code = status.HTTP_409_CONFLICT


class PayloadTooLarge(AppError):
    """Upload exceeds the configured byte ceiling."""
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
