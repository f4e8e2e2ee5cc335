# AuthClient: wires the auth core together for one browser context.
# Created: 2026-10-05

from __future__ import annotations

import httpx

from studyswaps.auth.csrf import CSRFTokenService
from studyswaps.auth.gateway import CredentialProvider, SecureRequestGateway
from studyswaps.auth.navigation import HistoryNavigator, Navigator
from studyswaps.auth.oauth_state import OAuthStateProtocol
from studyswaps.auth.session import SessionManager
from studyswaps.auth.token_store import TokenStore
from studyswaps.config import Settings, get_settings


class AuthClient:
    """One browser context: a cookie jar, a token store and a navigator.

    Usage::

        async with AuthClient() as auth:
            if not await auth.session.is_authenticated():
                await auth.oauth.initiate_oauth("google", "/dashboard")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        navigator: Navigator | None = None,
        credentials: CredentialProvider | None = None,
        store: TokenStore | None = None,
    ):
        self.settings = settings or get_settings()
        self._owns_http = http_client is None
        self.http = http_client or httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self.settings.request_timeout,
        )
        self.store = store or TokenStore(self.settings.local_storage_path)
        self.navigator = navigator or HistoryNavigator()

        self.csrf = CSRFTokenService(self.http, self.store, self.settings)
        self.oauth = OAuthStateProtocol(
            self.http, self.store, self.csrf, self.navigator, self.settings
        )
        self.gateway = SecureRequestGateway(
            self.http, self.store, self.csrf, self.navigator, credentials, self.settings
        )
        self.session = SessionManager(
            self.http, self.store, self.navigator, credentials, self.settings
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> AuthClient:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
