# Tests for auth/csrf.py
# Created: 2026-10-06

import logging

import httpx
import pytest

from studyswaps.auth import CSRFTokenService, CSRFUnavailableError
from studyswaps.auth.token_store import CSRF_TOKEN_KEY


def _down(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("server down", request=request)


class TestCSRFTokenService:
    async def test_server_token_is_cached(self, auth, server, store):
        token = await auth.csrf.generate_csrf_token()

        assert token in server.csrf_tokens
        assert store.get(CSRF_TOKEN_KEY) == token
        assert auth.csrf.last_token.fallback is False

    async def test_always_fresh(self, auth, server):
        first = await auth.csrf.generate_csrf_token()
        second = await auth.csrf.generate_csrf_token()
        assert first != second
        assert server.calls.count("/api/auth/csrf/generate") == 2

    async def test_sends_session_cookie(self, auth, server):
        await auth.csrf.generate_csrf_token()
        assert "sid=" in server.last_headers["/api/auth/csrf/generate"]["cookie"]

    async def test_fallback_when_server_down(self, settings, store, mock_http, caplog):
        service = CSRFTokenService(mock_http(_down), store, settings)

        with caplog.at_level(logging.WARNING, logger="studyswaps.auth.csrf"):
            token = await service.issue()

        assert token.fallback is True
        assert len(token.value) == 64
        int(token.value, 16)
        assert store.get(CSRF_TOKEN_KEY) is None
        assert "using fallback" in caplog.text

    async def test_fallback_on_error_status(self, settings, store, mock_http):
        service = CSRFTokenService(
            mock_http(lambda request: httpx.Response(500, text="boom")), store, settings
        )
        assert (await service.issue()).fallback is True

    async def test_fallback_on_malformed_body(self, settings, store, mock_http):
        service = CSRFTokenService(
            mock_http(lambda request: httpx.Response(200, json={"token": "wrong-key"})),
            store,
            settings,
        )
        assert (await service.issue()).fallback is True

    async def test_require_server_token(self, settings, store, mock_http):
        service = CSRFTokenService(mock_http(_down), store, settings)
        with pytest.raises(CSRFUnavailableError):
            await service.issue(require_server_token=True)

    async def test_fallback_values_differ(self, settings, store, mock_http):
        service = CSRFTokenService(mock_http(_down), store, settings)
        assert await service.generate_csrf_token() != await service.generate_csrf_token()

    async def test_headers(self, auth, server):
        headers = await auth.csrf.headers()
        assert headers["X-CSRF-Token"] in server.csrf_tokens
        assert headers["X-Requested-With"] == "XMLHttpRequest"
