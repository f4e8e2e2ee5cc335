# CSRF Token Service: server-issued anti-forgery tokens with a local fallback.
# Created: 2026-10-05

from __future__ import annotations

import logging
import secrets

import httpx

from studyswaps.auth.errors import CSRFUnavailableError
from studyswaps.auth.models import CSRFToken
from studyswaps.auth.token_store import CSRF_TOKEN_KEY, TokenStore
from studyswaps.config import Settings, get_settings

logger = logging.getLogger(__name__)

CSRF_HEADER = "X-CSRF-Token"
AJAX_HEADERS = {"X-Requested-With": "XMLHttpRequest"}


class CSRFTokenService:
    """Requests a fresh CSRF token from the server for every sensitive call.

    If the server cannot be reached the service falls back to a random local
    value so requests still carry the header. A fallback token carries no
    server guarantee: it is flagged on the returned :class:`CSRFToken` and
    never cached in the token store.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        store: TokenStore,
        settings: Settings | None = None,
    ):
        self._http = http
        self.store = store
        self.settings = settings or get_settings()
        self.last_token: CSRFToken | None = None

    async def issue(self, require_server_token: bool = False) -> CSRFToken:
        """Get a fresh token.

        Args:
            require_server_token: Raise CSRFUnavailableError instead of
                falling back to a locally generated value.
        """
        try:
            resp = await self._http.post(self.settings.csrf_path, json={})
            resp.raise_for_status()
            value = resp.json()["csrf_token"]
            if not isinstance(value, str) or not value:
                raise ValueError("empty csrf_token")
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            if require_server_token:
                raise CSRFUnavailableError("Server CSRF token unavailable") from e
            logger.warning("CSRF token generation failed, using fallback: %s", e)
            token = CSRFToken(value=secrets.token_hex(32), fallback=True)
        else:
            self.store.set(CSRF_TOKEN_KEY, value)
            token = CSRFToken(value=value)

        self.last_token = token
        return token

    async def generate_csrf_token(self) -> str:
        """Return a fresh token value (server-issued or fallback)."""
        return (await self.issue()).value

    async def headers(self) -> dict[str, str]:
        """Anti-forgery headers for a state-mutating request."""
        return {CSRF_HEADER: await self.generate_csrf_token(), **AJAX_HEADERS}
