# Token Store: per-browser-context storage for OAuth state and CSRF tokens.
# Created: 2026-10-05

from __future__ import annotations

import json
import logging
import os
import stat
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

OAUTH_STATE_KEY = "oauth_state"
CSRF_TOKEN_KEY = "csrf_token"


class Scope(str, Enum):
    SESSION = "session"  # per tab, gone when the context ends
    LOCAL = "local"  # survives the context when a path is configured


def oauth_state_key(flow_id: str | None = None) -> str:
    """Storage key for a pending OAuth flow.

    Without a flow id there is a single slot, so a second pending flow
    overwrites the first.
    """
    return f"{OAUTH_STATE_KEY}:{flow_id}" if flow_id else OAUTH_STATE_KEY


class TokenStore:
    """Two-scope key/value store modelled on sessionStorage + localStorage.

    The session scope is in-memory. The local scope is in-memory too unless
    ``local_path`` is given, in which case it is a JSON file chmod 0600
    (owner-only read/write).
    """

    def __init__(self, local_path: Path | None = None):
        self._session: dict[str, str] = {}
        self._local_path = local_path
        self._local: dict[str, str] = self._load_local()

    def _load_local(self) -> dict[str, str]:
        path = self._local_path
        if path is None or not path.exists():
            return {}
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to load local storage from %s: %s", path, e)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save_local(self) -> None:
        path = self._local_path
        if path is None:
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self._local, indent=2))
        os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)

    def _bucket(self, scope: Scope) -> dict[str, str]:
        return self._session if scope == Scope.SESSION else self._local

    def get(self, key: str, scope: Scope = Scope.SESSION) -> str | None:
        return self._bucket(scope).get(key)

    def set(self, key: str, value: str, scope: Scope = Scope.SESSION) -> None:
        self._bucket(scope)[key] = value
        if scope == Scope.LOCAL:
            self._save_local()

    def remove(self, key: str, scope: Scope = Scope.SESSION) -> bool:
        """Remove a key. Returns True if it was present."""
        removed = self._bucket(scope).pop(key, None) is not None
        if removed and scope == Scope.LOCAL:
            self._save_local()
        return removed

    def keys(self, scope: Scope = Scope.SESSION) -> list[str]:
        return list(self._bucket(scope))

    def clear(self, scope: Scope = Scope.SESSION) -> None:
        self._bucket(scope).clear()
        if scope == Scope.LOCAL:
            self._save_local()

    def clear_all(self) -> None:
        """Wipe both scopes (logout semantics)."""
        self.clear(Scope.SESSION)
        self.clear(Scope.LOCAL)
        logger.info("Cleared session and local storage")
