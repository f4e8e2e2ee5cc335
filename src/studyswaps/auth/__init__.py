"""Client-side OAuth state and session-security core."""

from studyswaps.auth.client import AuthClient
from studyswaps.auth.csrf import CSRFTokenService
from studyswaps.auth.errors import (
    USER_FACING_AUTH_MESSAGE,
    AuthenticationRequired,
    AuthError,
    CSRFUnavailableError,
    OAuthInitiationError,
    RequestFailed,
    StateRegistrationError,
    TokenIssuanceError,
)
from studyswaps.auth.gateway import SecureRequestGateway
from studyswaps.auth.models import (
    CSRFToken,
    OAuthState,
    SessionStatus,
    StateCheck,
    StateCheckReason,
    UserRecord,
)
from studyswaps.auth.navigation import BrowserNavigator, HistoryNavigator
from studyswaps.auth.oauth_state import OAuthStateProtocol
from studyswaps.auth.session import SessionManager
from studyswaps.auth.token_store import TokenStore

__all__ = [
    "USER_FACING_AUTH_MESSAGE",
    "AuthClient",
    "AuthError",
    "AuthenticationRequired",
    "BrowserNavigator",
    "CSRFToken",
    "CSRFTokenService",
    "CSRFUnavailableError",
    "HistoryNavigator",
    "OAuthInitiationError",
    "OAuthState",
    "OAuthStateProtocol",
    "RequestFailed",
    "SecureRequestGateway",
    "SessionManager",
    "SessionStatus",
    "StateCheck",
    "StateCheckReason",
    "StateRegistrationError",
    "TokenIssuanceError",
    "TokenStore",
    "UserRecord",
]
