# catalog_scout/crawler/browser.py
"""
PlaywrightRenderer: one Chromium browser context shared by every worker.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PWError,
    Page,
    Playwright,
    TimeoutError as PWTimeoutError,
    async_playwright,
)

from catalog_scout.config import Credentials, CrawlerConfig, SiteConfig
from catalog_scout.crawler.models import PageData
from catalog_scout.crawler.renderer import Cookie, Renderer
from catalog_scout.errors import NavigationFailure
from catalog_scout.logger import LOGGER_NAME

__all__ = ["PlaywrightRenderer"]

logger = logging.getLogger(LOGGER_NAME)


class PlaywrightRenderer(Renderer):
    """Renders JS-driven pages; each render gets its own tab in the shared context."""

    def __init__(self, config: CrawlerConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def __aenter__(self) -> "PlaywrightRenderer":
        self._playwright = await async_playwright().start()
        launch_kwargs: Dict[str, Any] = {
            "headless": self.config.headless,
            "args": ["--disable-blink-features=AutomationControlled"],
        }
        self._browser = await self._playwright.chromium.launch(**launch_kwargs)
        self._context = await self._browser.new_context(user_agent=self.config.user_agent)
        self._context.set_default_navigation_timeout(self.config.navigation_timeout * 1000)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._context is not None:
            await self._context.close()
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()
        self._context = self._browser = self._playwright = None

    @property
    def context(self) -> BrowserContext:
        if self._context is None:
            raise RuntimeError("Browser context not initialized")
        return self._context

    async def _goto(self, page: Page, url: str) -> None:
        try:
            response = await page.goto(url, wait_until="domcontentloaded")
        except PWError as exc:
            raise NavigationFailure(url, str(exc)) from exc
        if response is not None and response.status >= 400:
            raise NavigationFailure(url, f"HTTP {response.status}")

    async def render(
        self,
        url: str,
        *,
        wait_for: Optional[str] = None,
        wait_timeout: float = 0.0,
        settle: float = 0.0,
    ) -> PageData:
        page = await self.context.new_page()
        try:
            await self._goto(page, url)
            # a zero timeout means "wait forever" to Playwright
            if wait_for and wait_timeout > 0:
                try:
                    await page.wait_for_selector(wait_for, timeout=wait_timeout * 1000)
                except PWTimeoutError:
                    logger.debug("Selector %r did not appear on %s, continuing", wait_for, url)
            if settle:
                await page.wait_for_timeout(settle * 1000)
            return PageData(page.url, await page.content())
        finally:
            await page.close()

    async def adopt_cookies(self, cookies: List[Cookie]) -> None:
        if cookies:
            await self.context.add_cookies(cookies)

    async def browser_login(self, site: SiteConfig, credentials: Credentials, settle: float) -> bool:
        page = await self.context.new_page()
        try:
            await self._goto(page, site.absolute(site.login_path))
            try:
                await page.fill(site.username_selector, credentials.identity)
                await page.fill(site.password_selector, credentials.secret.get_secret_value())
                await page.click(site.submit_selector)
                if settle:
                    await page.wait_for_timeout(settle * 1000)
                return await page.query_selector(site.logged_in_selector) is not None
            except PWError as exc:
                # PWTimeoutError included; also a context destroyed by the post-login redirect
                logger.warning("Browser login not confirmed: %s", exc)
                return False
        finally:
            await page.close()
