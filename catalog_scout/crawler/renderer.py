# catalog_scout/crawler/renderer.py
"""
Rendering engine boundary: turn a URL into a DOM snapshot (:class:`PageData`).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from catalog_scout.crawler.models import PageData

if TYPE_CHECKING:
    from aiohttp import ClientSession

    from catalog_scout.config import Credentials, CrawlerConfig, SiteConfig

__all__ = ["Renderer", "Cookie", "build_renderer"]

#: cookie in the shape Playwright's ``BrowserContext.add_cookies`` accepts
Cookie = Dict[str, Any]


class Renderer(ABC):
    """Async context manager that renders pages within one session context."""

    async def __aenter__(self) -> "Renderer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    @abstractmethod
    async def render(
        self,
        url: str,
        *,
        wait_for: Optional[str] = None,
        wait_timeout: float = 0.0,
        settle: float = 0.0,
    ) -> PageData:
        """Load *url* and return its markup.

        *wait_for* is a CSS selector awaited for at most *wait_timeout*
        seconds; when it never appears the page is returned as loaded.
        Raises :class:`~catalog_scout.errors.NavigationFailure` when the page
        cannot be loaded at all.
        """

    @abstractmethod
    async def adopt_cookies(self, cookies: List[Cookie]) -> None:
        """Carry cookies of an HTTP-level login into subsequent renders."""

    @abstractmethod
    async def browser_login(
        self, site: "SiteConfig", credentials: "Credentials", settle: float
    ) -> bool:
        """Log in through the page itself; True when the logged-in marker is present."""


def build_renderer(config: "CrawlerConfig", http: "ClientSession") -> Renderer:
    """Renderer selected by ``config.renderer``."""
    if config.renderer == "http":
        from catalog_scout.crawler.fetcher import HttpRenderer

        return HttpRenderer(http, config)
    from catalog_scout.crawler.browser import PlaywrightRenderer

    return PlaywrightRenderer(config)
