"""Exception hierarchy for secure_session.

Login outcomes and session-invalidating responses are reported as data
(:class:`~secure_session.models.LoginResult` and navigation side effects),
so the exceptions here cover configuration mistakes, misuse, and transport
failures outside the login handshake.

All exceptions inherit from :class:`SecureSessionError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`secure_session.exit_codes`. The CLI entry point catches
``SecureSessionError`` and exits with the appropriate code.

Subclass hierarchy::

    SecureSessionError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- ResponseError       (exit 4)
    +-- LoginError          (exit 5)
    +-- ConnectionError_    (exit 6)
    +-- ConfigError         (exit 1)
"""

from secure_session.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_LOGIN_ERROR,
)


class SecureSessionError(Exception):
    """Base exception for all secure_session errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SecureSessionError):
    """Raised for invalid arguments or missing required request parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(SecureSessionError):
    """Raised for unknown auth types, bad authenticator config, or a denied login in the CLI."""

    exit_code = EXIT_AUTH_FAILURE


class LoginError(SecureSessionError):
    """Raised by the CLI when a login attempt ends with an ``error`` result."""

    exit_code = EXIT_LOGIN_ERROR


class ConnectionError_(SecureSessionError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(SecureSessionError):
    """Raised for configuration problems (missing profiles, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class ResponseError(SecureSessionError):
    """Raised by the resource layer when the API answers with an HTTP error status.

    The originating session has already seen the response by the time this
    is raised, so a forced logout has already happened where applicable.

    Args:
        message: Human-readable error description.
        status_code: The HTTP status of the response.
    """

    exit_code = EXIT_HTTP_ERROR

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code
