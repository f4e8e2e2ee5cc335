# Auth errors raised by the client-side auth core.
# Created: 2026-10-05

from __future__ import annotations

# The only text meant for end users after an auth failure. Details are logged.
USER_FACING_AUTH_MESSAGE = "Please sign in again."


class AuthError(Exception):
    """Base class for all auth core errors."""


class TokenIssuanceError(AuthError):
    """The server did not issue an OAuth validation token."""


class StateRegistrationError(AuthError):
    """The server did not accept registration of a pending OAuth state."""


class OAuthInitiationError(AuthError):
    """The server-brokered provider redirect could not be obtained."""


class CSRFUnavailableError(AuthError):
    """A server-issued CSRF token was required but could not be obtained."""


class RequestFailed(AuthError):
    """A secure request returned a non-2xx status."""

    def __init__(self, status_code: int, detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}" if detail else f"HTTP {status_code}")


class AuthenticationRequired(RequestFailed):
    """The server answered 401; the local session has been torn down."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(401, detail)
