"""Error types raised across the data-ingestion boundary.

Malformed numeric fields are never raised; they resolve inline through
``engines.inputs.parsing.parse_number_or``. Short history is not an error
either: the smoothing engine and the ranker degrade instead.
"""

from __future__ import annotations

from typing import Optional


class SentinelError(Exception):
    """Base class for cycle-level failures."""

    code: str = "SENTINEL_ERROR"
    retryable: bool = True

    def __init__(self, message: str, status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        if code is not None:
            self.code = code


class FetchError(SentinelError):
    """Network failure, timeout or non-2xx response from the data provider."""

    code = "SERVER_ERROR"
    retryable = True


class AuthError(SentinelError):
    """Credential rejected by the data provider."""

    code = "AUTH_FAILED"
    retryable = False


class RateLimitError(SentinelError):
    """Provider asked us to slow down."""

    code = "RATE_LIMIT"
    retryable = True

    def __init__(
        self,
        message: str,
        status: Optional[int] = 429,
        code: Optional[str] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message, status=status, code=code)
        self.retry_after = retry_after


class HistoryOrderError(ValueError):
    """A point older than the newest stored point was offered to the history buffer."""
