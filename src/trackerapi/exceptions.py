"""Exception hierarchy for trackerapi.

All exceptions inherit from :class:`TrackerError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`trackerapi.exit_codes`.
Library callers catch the specific subclasses; the top-level handler in
:func:`trackerapi.app.main` catches ``TrackerError`` and exits with the
appropriate code.

Subclass hierarchy::

    TrackerError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- ConfigError             (exit 1)
    +-- AuthenticationRequired  (exit 3)
    +-- LoginFailed             (exit 3)
    +-- APIError                (exit 5)
    +-- NetworkError            (exit 6)
    +-- DecodeError             (exit 7)
    +-- CacheError              (exit 8)

Nothing in the request pipeline retries on any of these; they surface to
the immediate caller unmodified.
"""

from trackerapi.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CACHE_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class TrackerError(Exception):
    """Base exception for all trackerapi errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`trackerapi.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(TrackerError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(TrackerError):
    """Raised for configuration problems (missing profiles, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class AuthenticationRequired(TrackerError):
    """Raised when an authenticated call is attempted before a successful login."""

    exit_code = EXIT_AUTH_FAILURE

    def __init__(self, message: str = "not logged in"):
        super().__init__(message)


class LoginFailed(TrackerError):
    """Raised when the login form post does not land on the index page.

    This is a rejection by the tracker (bad credentials, banned account,
    captcha), distinct from a :class:`NetworkError`.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(self, message: str = "login failed"):
        super().__init__(message)


class APIError(TrackerError):
    """Raised when a response envelope reports a non-success status.

    ``message`` holds the server's ``error`` text verbatim.
    """

    exit_code = EXIT_API_ERROR


class NetworkError(TrackerError):
    """Raised on transport failures and on any non-200 HTTP status."""

    exit_code = EXIT_CONNECTION_ERROR


class DecodeError(TrackerError):
    """Raised when a body matches neither the envelope nor the target shape."""

    exit_code = EXIT_DECODE_ERROR


class CacheError(TrackerError):
    """Raised when the backing store cannot be read or written.

    An ordinary cache miss is never an error.
    """

    exit_code = EXIT_CACHE_ERROR
