# OAuth State Protocol: generate, register and validate sign-in redirect state.
# Created: 2026-10-05
#
# The state lives in two places: the tab's token store and the server's
# state registry. A returned state must match the local copy exactly, be
# younger than the TTL, and still be registered on the server. It is
# consumed in both places on the first successful validation.

from __future__ import annotations

import hmac
import logging
import secrets
import time

import httpx

from studyswaps.auth.csrf import AJAX_HEADERS, CSRF_HEADER, CSRFTokenService
from studyswaps.auth.errors import (
    OAuthInitiationError,
    StateRegistrationError,
    TokenIssuanceError,
)
from studyswaps.auth.models import OAuthState, StateCheck, StateCheckReason
from studyswaps.auth.navigation import Navigator
from studyswaps.auth.token_store import TokenStore, oauth_state_key
from studyswaps.config import Settings, get_settings

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("google", "microsoft", "apple", "facebook")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _is_local_path(path: str) -> bool:
    return path.startswith("/") and not path.startswith("//") and "\\" not in path


class OAuthStateProtocol:
    """Client half of the OAuth state handshake.

    Provider URLs and credentials never reach the client: the server turns
    ``(provider, state)`` into the redirect URL.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        store: TokenStore,
        csrf: CSRFTokenService,
        navigator: Navigator,
        settings: Settings | None = None,
    ):
        self._http = http
        self.store = store
        self.csrf = csrf
        self.navigator = navigator
        self.settings = settings or get_settings()

    @property
    def ttl_ms(self) -> int:
        return self.settings.oauth_state_ttl_seconds * 1000

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def _issue_validation_token(self) -> str:
        resp = await self._http.post(self.settings.generate_token_path, json={})
        if not resp.is_success:
            raise TokenIssuanceError(
                f"Failed to generate server validation token (HTTP {resp.status_code})"
            )
        try:
            token = resp.json()["token"]
        except (ValueError, KeyError, TypeError) as e:
            raise TokenIssuanceError("Server validation token missing from response") from e
        if not isinstance(token, str) or not token:
            raise TokenIssuanceError("Server validation token missing from response")
        return token

    async def _register(self, encoded: str) -> None:
        resp = await self._http.post(self.settings.register_state_path, json={"state": encoded})
        if not resp.is_success:
            raise StateRegistrationError(
                f"Server refused OAuth state registration (HTTP {resp.status_code})"
            )

    async def generate_state(self, redirect_to: str = "/", flow_id: str | None = None) -> str:
        """Create a state, register it with the server, then store it locally.

        Args:
            redirect_to: Path to land on after sign-in. Must be a local path.
            flow_id: Optional flow identifier; without one, a new state
                replaces any pending state in this context.

        Returns:
            The encoded state to round-trip through the provider redirect.
        """
        if not _is_local_path(redirect_to):
            raise ValueError(f"redirect_to must be a local path: {redirect_to!r}")

        state = OAuthState(
            nonce=secrets.token_hex(16),
            timestamp=_now_ms(),
            redirect=redirect_to,
            csrf=secrets.token_hex(16),
            validation_token=await self._issue_validation_token(),
        )
        encoded = state.encode()

        # A refused registration must not displace the pending state
        await self._register(encoded)

        key = oauth_state_key(flow_id)
        if self.store.get(key) is not None:
            logger.debug("Replacing pending OAuth state under %s", key)
        self.store.set(key, encoded)
        return encoded

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    async def _confirm_with_server(self, encoded: str) -> StateCheckReason:
        try:
            resp = await self._http.post(
                self.settings.validate_state_path,
                json={"state": encoded},
                headers=await self.csrf.headers(),
            )
        except httpx.HTTPError as e:
            logger.warning("OAuth state confirmation unreachable: %s", e)
            return StateCheckReason.PROVIDER_UNAVAILABLE

        if not resp.is_success:
            logger.warning("Server rejected OAuth state (HTTP %s)", resp.status_code)
            return StateCheckReason.REJECTED
        try:
            valid = resp.json().get("valid") is True
        except (ValueError, AttributeError):
            valid = False
        return StateCheckReason.OK if valid else StateCheckReason.REJECTED

    async def _clear_on_server(self, encoded: str) -> None:
        try:
            resp = await self._http.post(
                self.settings.clear_state_path,
                json={"state": encoded},
                headers=await self.csrf.headers(),
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Failed to clear OAuth state on server: %s", e)

    async def check_state(self, received: str | None, flow_id: str | None = None) -> StateCheck:
        """Validate a returned state and report why it failed, if it did.

        Local checks run first and fail fast without touching the network.
        """
        key = oauth_state_key(flow_id)
        stored = self.store.get(key)
        if stored is None:
            logger.warning("OAuth state validation failed: no stored state")
            return StateCheck(StateCheckReason.MISSING)

        if not isinstance(received, str) or not received:
            logger.warning("OAuth state validation failed: no state received")
            return StateCheck(StateCheckReason.MISMATCH)

        if not hmac.compare_digest(received.encode(), stored.encode()):
            logger.warning("OAuth state validation failed: state mismatch")
            return StateCheck(StateCheckReason.MISMATCH)

        try:
            state = OAuthState.decode(stored)
        except ValueError as e:
            logger.warning("OAuth state validation failed: %s", e)
            self.store.remove(key)
            return StateCheck(StateCheckReason.MALFORMED)

        if state.age_ms(_now_ms()) > self.ttl_ms:
            logger.warning("OAuth state validation failed: state expired")
            self.store.remove(key)
            return StateCheck(StateCheckReason.EXPIRED)

        reason = await self._confirm_with_server(received)
        if reason is not StateCheckReason.OK:
            return StateCheck(reason)

        # Single use
        self.store.remove(key)
        await self._clear_on_server(received)
        return StateCheck(StateCheckReason.OK, state)

    async def validate_state(
        self, received: str | None, flow_id: str | None = None
    ) -> OAuthState | None:
        """Return the decoded state, or None if sign-in must be aborted."""
        return (await self.check_state(received, flow_id)).state

    # ------------------------------------------------------------------
    # Initiation
    # ------------------------------------------------------------------

    async def initiate_oauth(
        self,
        provider: str = "google",
        redirect_to: str = "/",
        flow_id: str | None = None,
    ) -> str:
        """Start a server-brokered sign-in and navigate to the provider.

        Returns:
            The redirect URL the navigator was sent to.
        """
        if provider not in SUPPORTED_PROVIDERS:
            raise ValueError(f"Unknown OAuth provider: {provider}")

        try:
            state = await self.generate_state(redirect_to, flow_id)
            token = await self.csrf.generate_csrf_token()
            resp = await self._http.post(
                self.settings.initiate_path,
                json={"provider": provider, "state": state, "redirect_to": redirect_to},
                headers={CSRF_HEADER: token, **AJAX_HEADERS},
            )
            if not resp.is_success:
                raise OAuthInitiationError(f"OAuth initiation failed (HTTP {resp.status_code})")
            try:
                redirect_url = resp.json()["redirect_url"]
            except (ValueError, KeyError, TypeError) as e:
                raise OAuthInitiationError("OAuth initiation returned no redirect_url") from e
        except Exception:
            logger.exception("OAuth initiation failed for %s", provider)
            raise

        self.navigator.navigate(redirect_url)
        logger.info("Redirecting to %s sign-in", provider)
        return redirect_url
