# Auth data models: OAuth state blob, CSRF tokens, session status.
# Created: 2026-10-05

from __future__ import annotations

import base64
import json
from dataclasses import asdict, dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict


@dataclass
class OAuthState:
    """Anti-forgery state round-tripped through an identity-provider redirect."""

    nonce: str
    timestamp: int  # epoch millis
    redirect: str
    csrf: str
    validation_token: str

    def encode(self) -> str:
        """Serialize as base64-encoded compact JSON."""
        raw = json.dumps(asdict(self), separators=(",", ":"))
        return base64.b64encode(raw.encode()).decode("ascii")

    @classmethod
    def decode(cls, value: str) -> OAuthState:
        """Parse an encoded state. Raises ValueError on anything malformed."""
        try:
            data = json.loads(base64.b64decode(value, validate=True))
            state = cls(
                nonce=data["nonce"],
                timestamp=data["timestamp"],
                redirect=data["redirect"],
                csrf=data["csrf"],
                validation_token=data["validation_token"],
            )
        except (ValueError, KeyError, TypeError) as e:
            raise ValueError(f"Malformed OAuth state: {e}") from e

        if not isinstance(state.timestamp, int) or isinstance(state.timestamp, bool):
            raise ValueError("Malformed OAuth state: timestamp is not an integer")
        return state

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.timestamp


@dataclass
class CSRFToken:
    """An anti-forgery token and whether it was server-issued."""

    value: str
    fallback: bool = False  # True = generated locally, no server guarantee


class StateCheckReason(str, Enum):
    OK = "ok"
    MISSING = "missing"  # nothing stored locally for this flow
    MISMATCH = "mismatch"  # received value differs from the stored one
    MALFORMED = "malformed"  # stored value could not be decoded
    EXPIRED = "expired"  # older than the state TTL
    REJECTED = "rejected"  # server says not registered or already consumed
    PROVIDER_UNAVAILABLE = "provider_unavailable"  # server unreachable


@dataclass
class StateCheck:
    """Tagged result of validating a returned OAuth state."""

    reason: StateCheckReason
    state: OAuthState | None = None

    @property
    def ok(self) -> bool:
        return self.reason is StateCheckReason.OK and self.state is not None


class UserRecord(BaseModel):
    """Server-owned user record. Only the routing-relevant fields are typed."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    email: str | None = None
    role: str | None = None
    onboarding_completed: bool = False
    profile_completed: bool = False

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() == "admin"

    @property
    def is_teacher(self) -> bool:
        return (self.role or "").lower() == "teacher"

    @property
    def needs_onboarding(self) -> bool:
        return not self.onboarding_completed

    def home_path(self) -> str:
        """Landing route for this user after sign-in."""
        if self.needs_onboarding:
            return "/onboarding"
        if self.is_admin:
            return "/admin"
        if self.is_teacher:
            return "/teacher/dashboard"
        return "/dashboard"


class SessionStatus(BaseModel):
    """Payload of the session probe endpoint."""

    model_config = ConfigDict(extra="ignore")

    authenticated: bool = False
    user: UserRecord | None = None
