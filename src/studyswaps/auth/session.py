# Session Manager: server-owned session status, current user, logout.
# Created: 2026-10-05

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from studyswaps.auth.gateway import CredentialProvider, bearer_headers
from studyswaps.auth.models import SessionStatus, UserRecord
from studyswaps.auth.navigation import Navigator
from studyswaps.auth.token_store import TokenStore
from studyswaps.config import Settings, get_settings

logger = logging.getLogger(__name__)


class SessionManager:
    """Read-through view of the server session.

    The client never holds or rotates refresh tokens: the server refreshes
    the cookie session transparently. Query failures of any kind read as
    "not authenticated".
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        store: TokenStore,
        navigator: Navigator,
        credentials: CredentialProvider | None = None,
        settings: Settings | None = None,
    ):
        self._http = http
        self.store = store
        self.navigator = navigator
        self.credentials = credentials
        self.settings = settings or get_settings()

    async def status(self) -> SessionStatus:
        """Probe the session endpoint. Raises on transport or decode errors."""
        resp = await self._http.get(
            self.settings.session_path,
            headers=bearer_headers(self.credentials),
        )
        if not resp.is_success:
            return SessionStatus(authenticated=False)
        return SessionStatus.model_validate(resp.json())

    async def _safe_status(self) -> SessionStatus:
        try:
            return await self.status()
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.error("Session check failed: %s", e)
            return SessionStatus(authenticated=False)

    async def is_authenticated(self) -> bool:
        return (await self._safe_status()).authenticated

    async def get_current_user(self) -> UserRecord | None:
        return (await self._safe_status()).user

    async def refresh_session(self) -> bool:
        # Refresh happens server-side; checking status is all the client does
        return await self.is_authenticated()

    async def logout(self) -> None:
        """Tear down the session. Always ends at the app root."""
        try:
            self.store.clear_all()
        except OSError as e:
            logger.error("Failed to clear local storage: %s", e)

        try:
            resp = await self._http.post(
                self.settings.logout_path,
                headers=bearer_headers(self.credentials),
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Logout error: %s", e)

        self.navigator.navigate(self.settings.app_root)
