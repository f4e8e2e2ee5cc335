# Shared fixtures: an in-process fake StudySwaps server mounted via ASGITransport.
# Created: 2026-10-06

import secrets

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from studyswaps.auth import AuthClient, HistoryNavigator, TokenStore
from studyswaps.auth.token_store import Scope
from studyswaps.config import Settings

BASE_URL = "http://testserver"
SESSION_COOKIE = "sid"


class FakeServer:
    """Minimal server side of the auth protocol, with knobs for failure modes."""

    def __init__(self):
        self.validation_tokens: set[str] = set()
        self.registered: set[str] = set()
        self.csrf_tokens: set[str] = set()
        self.session_id = "session-abc"
        self.user = {
            "id": "u1",
            "email": "student@example.com",
            "role": "student",
            "onboarding_completed": True,
            "school": "Hillside",
        }
        self.generate_token_status = 200
        self.register_status = 200
        self.logout_status = 200
        self.calls: list[str] = []
        self.last_headers: dict[str, dict[str, str]] = {}
        self.app = self._build_app()

    def _record(self, request: Request) -> None:
        path = request.url.path
        self.calls.append(path)
        self.last_headers[path] = dict(request.headers)

    def _csrf_ok(self, request: Request) -> bool:
        return request.headers.get("x-csrf-token") in self.csrf_tokens

    def _authenticated(self, request: Request) -> bool:
        return request.cookies.get(SESSION_COOKIE) == self.session_id

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.post("/api/auth/oauth/generate-token")
        async def generate_token(request: Request):
            self._record(request)
            if self.generate_token_status != 200:
                return JSONResponse({"error": "nope"}, status_code=self.generate_token_status)
            token = secrets.token_urlsafe(16)
            self.validation_tokens.add(token)
            return {"token": token}

        @app.post("/api/auth/register-state")
        async def register_state(request: Request):
            self._record(request)
            if self.register_status != 200:
                return JSONResponse({"error": "nope"}, status_code=self.register_status)
            self.registered.add((await request.json())["state"])
            return {"ok": True}

        @app.post("/api/auth/oauth/validate-state")
        async def validate_state(request: Request):
            self._record(request)
            if not self._csrf_ok(request):
                return JSONResponse({"error": "csrf"}, status_code=403)
            return {"valid": (await request.json())["state"] in self.registered}

        @app.post("/api/auth/oauth/clear-state")
        async def clear_state(request: Request):
            self._record(request)
            if not self._csrf_ok(request):
                return JSONResponse({"error": "csrf"}, status_code=403)
            self.registered.discard((await request.json())["state"])
            return {"ok": True}

        @app.post("/api/auth/initiate")
        async def initiate(request: Request):
            self._record(request)
            body = await request.json()
            if not self._csrf_ok(request) or body["state"] not in self.registered:
                return JSONResponse({"error": "forbidden"}, status_code=403)
            return {
                "redirect_url": f"https://idp.example.com/{body['provider']}/auth"
                f"?state={body['state']}"
            }

        @app.post("/api/auth/csrf/generate")
        async def csrf_generate(request: Request):
            self._record(request)
            token = secrets.token_hex(16)
            self.csrf_tokens.add(token)
            return {"csrf_token": token}

        @app.get("/api/auth/session")
        async def session(request: Request):
            self._record(request)
            if not self._authenticated(request):
                return {"authenticated": False, "user": None}
            return {"authenticated": True, "user": self.user}

        @app.post("/api/auth/logout")
        async def logout(request: Request):
            self._record(request)
            if self.logout_status != 200:
                return JSONResponse({"error": "down"}, status_code=self.logout_status)
            self.session_id = None
            return {"ok": True}

        @app.post("/api/lessons")
        async def create_lesson(request: Request):
            self._record(request)
            if not self._authenticated(request):
                return JSONResponse({"error": "unauthorized"}, status_code=401)
            if not self._csrf_ok(request):
                return JSONResponse({"error": "csrf"}, status_code=403)
            body = await request.json()
            return JSONResponse(
                {"id": "lesson-1", **body},
                headers={"x-session-refreshed": "true"},
            )

        @app.get("/api/motd")
        async def motd(request: Request):
            self._record(request)
            return PlainTextResponse("revise early")

        @app.get("/api/broken")
        async def broken(request: Request):
            self._record(request)
            return PlainTextResponse("database on fire", status_code=500)

        @app.get("/api/profile")
        async def profile(request: Request):
            self._record(request)
            if request.headers.get("authorization") != "Bearer good-token":
                return JSONResponse({"error": "bad token"}, status_code=401)
            return {"name": "Sam"}

        return app


class RecordingNavigator(HistoryNavigator):
    """Remembers which storage keys were still present at each navigation."""

    def __init__(self, store: TokenStore):
        super().__init__()
        self.store = store
        self.keys_at_navigation: list[list[str]] = []

    def navigate(self, url: str) -> None:
        self.keys_at_navigation.append(self.store.keys() + self.store.keys(Scope.LOCAL))
        super().navigate(url)


@pytest.fixture
def settings():
    return Settings(base_url=BASE_URL)


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
async def http(server):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=server.app),
        base_url=BASE_URL,
        cookies={SESSION_COOKIE: server.session_id},
    ) as client:
        yield client


@pytest.fixture
def store():
    return TokenStore()


@pytest.fixture
def navigator(store):
    return RecordingNavigator(store)


@pytest.fixture
def auth(settings, http, store, navigator):
    return AuthClient(settings, http_client=http, navigator=navigator, store=store)


@pytest.fixture
def mock_http():
    """Factory for AsyncClients whose requests are answered by ``handler(request)``."""

    def make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)

    return make
