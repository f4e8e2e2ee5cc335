# Secure Request Gateway: CSRF headers, cookie credentials, fail-closed 401s.
# Created: 2026-10-05

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Literal

import httpx

from studyswaps.auth.csrf import AJAX_HEADERS, CSRF_HEADER, CSRFTokenService
from studyswaps.auth.errors import AuthenticationRequired, RequestFailed
from studyswaps.auth.navigation import Navigator
from studyswaps.auth.token_store import TokenStore
from studyswaps.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Returns a bearer token for the current user, or None
CredentialProvider = Callable[[], str | None]

SESSION_REFRESHED_HEADER = "x-session-refreshed"


def bearer_headers(credentials: CredentialProvider | None) -> dict[str, str]:
    token = credentials() if credentials else None
    return {"Authorization": f"Bearer {token}"} if token else {}


def parse_response(resp: httpx.Response) -> Any:
    """Decode a 2xx body by content type; raise RequestFailed otherwise."""
    if not resp.is_success:
        raise RequestFailed(resp.status_code, resp.text)

    if "application/json" in resp.headers.get("content-type", ""):
        return resp.json()
    return resp.text


def _error_detail(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.reason_phrase or resp.text
    if isinstance(data, dict):
        return data.get("error") or data.get("message") or resp.reason_phrase
    return resp.reason_phrase


class SecureRequestGateway:
    """Entry point for every security-sensitive call to the server.

    Each request gets a fresh CSRF token and the AJAX marker header, and is
    sent with the context's cookie jar. Any 401 is treated as "the session
    is gone": local state is wiped and the navigator is sent to the app
    root before AuthenticationRequired is raised.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        store: TokenStore,
        csrf: CSRFTokenService,
        navigator: Navigator,
        credentials: CredentialProvider | None = None,
        settings: Settings | None = None,
    ):
        self._http = http
        self.store = store
        self.csrf = csrf
        self.navigator = navigator
        self.credentials = credentials
        self.settings = settings or get_settings()

    def _fails_closed(self, url: str) -> bool:
        if not self.settings.logout_on_401:
            return False
        paths = self.settings.session_paths
        if not paths:
            return True
        path = httpx.URL(url).path
        return any(path.startswith(p) for p in paths)

    def _end_session(self) -> None:
        # Storage must be gone before the navigation happens
        self.store.clear_all()
        self.navigator.navigate(self.settings.app_root)

    async def secure_request(
        self,
        url: str,
        method: str = "GET",
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Send a CSRF-protected, cookie-authenticated request.

        Returns:
            Parsed JSON when the response declares application/json,
            otherwise the body text.
        """
        token = await self.csrf.generate_csrf_token()
        merged = {
            "Content-Type": "application/json",
            CSRF_HEADER: token,
            **AJAX_HEADERS,
            **bearer_headers(self.credentials),
            **(headers or {}),
        }

        try:
            resp = await self._http.request(method, url, json=json, headers=merged, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Secure API request to %s failed: %s", url, e)
            raise

        if resp.headers.get(SESSION_REFRESHED_HEADER) == "true":
            logger.info("Session was automatically refreshed by server")

        if resp.status_code == 401:
            logger.warning("Secure API request to %s returned 401", url)
            if self._fails_closed(url):
                self._end_session()
            raise AuthenticationRequired()

        try:
            return parse_response(resp)
        except RequestFailed as e:
            logger.error("Secure API request to %s failed: %s", url, e)
            raise

    async def api_request(self, method: str, url: str, data: Any = None) -> httpx.Response:
        """Bearer-authenticated request. Requires a token from the credential provider."""
        auth = bearer_headers(self.credentials)
        if not auth:
            raise AuthenticationRequired("No valid authentication session - please log in")

        resp = await self._http.request(
            method,
            url,
            json=data,
            headers={"Content-Type": "application/json", **auth},
        )
        if resp.status_code == 401:
            raise AuthenticationRequired(f"Authentication failed: {_error_detail(resp)}")
        if not resp.is_success:
            detail = _error_detail(resp)
            logger.error("API request %s %s failed: %s", method, url, detail)
            raise RequestFailed(resp.status_code, detail)
        return resp

    async def query(
        self,
        url: str,
        on_unauthorized: Literal["throw", "return_null"] = "throw",
    ) -> Any:
        """GET a JSON resource, sending the bearer token when one is available."""
        resp = await self._http.get(url, headers=bearer_headers(self.credentials))
        if resp.status_code == 401 and on_unauthorized == "return_null":
            return None
        if resp.status_code == 401:
            raise AuthenticationRequired(resp.text or resp.reason_phrase)
        if not resp.is_success:
            raise RequestFailed(resp.status_code, resp.text or resp.reason_phrase)
        return resp.json()
