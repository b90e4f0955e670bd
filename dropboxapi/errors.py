"""Result codes, exception hierarchy and retry decorator."""

import enum
import functools
import logging
import time

from . import config

log = logging.getLogger(__name__)


# ── Result codes ──────────────────────────────────────────────────

class ErrorCode(enum.IntEnum):
    """Outcome of a client operation.

    HTTP-backed members carry the status the service answers with.
    PARTIAL_CONTENT is a success variant returned for ranged downloads.
    """

    SUCCESS = 200
    PARTIAL_CONTENT = 206
    BAD_INPUT = 400
    AUTH_ERROR = 401
    CONFLICT = 403
    NOT_FOUND = 404
    TOO_MANY_ENTRIES = 406
    RANGE_NOT_SATISFIABLE = 416
    RATE_LIMITED = 503
    OVER_QUOTA = 507
    SERVER_ERROR = 500
    TRANSPORT_ERROR = -1

    @property
    def is_success(self) -> bool:
        return self in (ErrorCode.SUCCESS, ErrorCode.PARTIAL_CONTENT)


# ── Exceptions ────────────────────────────────────────────────────

class DropboxError(Exception):
    """Base exception for all dropboxapi errors."""

    code = ErrorCode.TRANSPORT_ERROR


class ConfigError(DropboxError):
    """Missing or invalid local configuration.

    Raised for absent consumer credentials, so it reports as an auth failure.
    """

    code = ErrorCode.AUTH_ERROR


class SessionError(DropboxError):
    """Client used in a way its session state does not allow."""

    code = ErrorCode.AUTH_ERROR


class AuthError(DropboxError):
    """OAuth handshake rejected, or token missing / invalid."""

    code = ErrorCode.AUTH_ERROR


class TransportError(DropboxError):
    """Network failure before the service produced a response."""

    code = ErrorCode.TRANSPORT_ERROR


class APIError(DropboxError):
    """Remote API returned an error status."""

    code = ErrorCode.SERVER_ERROR

    def __init__(self, status, msg=""):
        self.status = status
        self.msg = msg
        super().__init__(f"API error {status}: {msg}")


class BadInputError(APIError):
    code = ErrorCode.BAD_INPUT


class NotFoundError(APIError):
    code = ErrorCode.NOT_FOUND


class ConflictError(APIError):
    """Target already exists or the operation is not allowed on it."""

    code = ErrorCode.CONFLICT


class TooManyEntriesError(APIError):
    code = ErrorCode.TOO_MANY_ENTRIES


class RangeNotSatisfiableError(APIError):
    code = ErrorCode.RANGE_NOT_SATISFIABLE


class RateLimitedError(APIError):
    code = ErrorCode.RATE_LIMITED


class OverQuotaError(APIError):
    code = ErrorCode.OVER_QUOTA


class ServerError(APIError):
    code = ErrorCode.SERVER_ERROR


_STATUS_ERRORS = {
    400: BadInputError,
    403: ConflictError,
    404: NotFoundError,
    406: TooManyEntriesError,
    409: ConflictError,
    416: RangeNotSatisfiableError,
    429: RateLimitedError,
    503: RateLimitedError,
    507: OverQuotaError,
}


def error_for_status(status: int, msg: str = "") -> DropboxError:
    """Map an HTTP error status to the matching exception instance."""
    if status == 401:
        return AuthError(f"Invalid or expired access token: {msg}")
    cls = _STATUS_ERRORS.get(status, ServerError)
    return cls(status, msg)


# ── Retry decorator ──────────────────────────────────────────────

def retry(max_retries=None, backoff=None, exceptions=(Exception,)):
    """Decorator that retries a function on transient failures.

    Parameters
    ----------
    max_retries : int, optional
        Maximum number of attempts. Defaults to config.MAX_RETRIES.
    backoff : float, optional
        Base backoff in seconds. Defaults to config.RETRY_BACKOFF.
    exceptions : tuple of Exception types
        Which exceptions should trigger a retry.
    """
    if max_retries is None:
        max_retries = config.MAX_RETRIES
    if backoff is None:
        backoff = config.RETRY_BACKOFF
    max_retries = max(1, max_retries)

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            last_exc = None
            for attempt in range(1, max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as exc:
                    last_exc = exc
                    if attempt < max_retries:
                        wait = backoff * attempt
                        log.warning(
                            "Retry %d/%d for %s after error: %s (waiting %.1fs)",
                            attempt, max_retries, func.__name__, exc, wait,
                        )
                        time.sleep(wait)
            raise last_exc  # type: ignore[misc]
        return wrapper
    return decorator
