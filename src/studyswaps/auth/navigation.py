# Navigation: where the "browser" goes after redirects and logouts.
# Created: 2026-10-05

from __future__ import annotations

import logging
import urllib.parse
import webbrowser
from typing import Protocol

logger = logging.getLogger(__name__)


class Navigator(Protocol):
    def navigate(self, url: str) -> None: ...


class HistoryNavigator:
    """Records navigations instead of performing them."""

    def __init__(self):
        self.history: list[str] = []

    @property
    def current(self) -> str | None:
        return self.history[-1] if self.history else None

    def navigate(self, url: str) -> None:
        self.history.append(url)


class BrowserNavigator:
    """Opens URLs in the system web browser.

    Relative paths (``/``, ``/dashboard``) are resolved against ``base_url``.
    """

    def __init__(self, base_url: str):
        self.base_url = base_url

    def navigate(self, url: str) -> None:
        target = urllib.parse.urljoin(self.base_url, url)
        logger.info("Opening %s", target)
        webbrowser.open(target)
