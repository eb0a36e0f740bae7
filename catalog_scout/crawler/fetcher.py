# catalog_scout/crawler/fetcher.py
"""
HttpRenderer: plain HTTP fetching with retry/backoff and timeout.

Serves static markup as-is (no script execution). It shares the aiohttp
session, and therefore the cookie jar, with the HTTP login.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout
from bs4 import BeautifulSoup

from catalog_scout.config import Credentials, CrawlerConfig, SiteConfig
from catalog_scout.crawler.models import PageData
from catalog_scout.crawler.renderer import Cookie, Renderer
from catalog_scout.errors import NavigationFailure
from catalog_scout.logger import LOGGER_NAME

__all__ = ["HttpRenderer"]

logger = logging.getLogger(LOGGER_NAME)


class HttpRenderer(Renderer):
    """Handles HTTP fetching with retries/backoff and timeout."""

    _RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)

    def __init__(self, session: ClientSession, config: CrawlerConfig) -> None:
        self.session = session
        self.config = config
        self._timeout = ClientTimeout(total=config.navigation_timeout)

    async def render(
        self,
        url: str,
        *,
        wait_for: Optional[str] = None,
        wait_timeout: float = 0.0,
        settle: float = 0.0,
    ) -> PageData:
        page = await self._fetch(url)
        if wait_for and BeautifulSoup(page.content, "html.parser").select_one(wait_for) is None:
            logger.debug("Selector %r not present on %s, continuing", wait_for, url)
        if settle:
            await asyncio.sleep(settle)
        return page

    async def _fetch(self, url: str) -> PageData:
        attempts = 0
        while True:
            try:
                async with self.session.get(url, timeout=self._timeout) as resp:
                    if resp.status in self._RETRY_STATUS:
                        raise ClientError(f"retryable status {resp.status}")
                    if resp.status >= 400:
                        raise NavigationFailure(url, f"HTTP {resp.status}")
                    return PageData(str(resp.url), await resp.text())
            except asyncio.TimeoutError as exc:
                # no retry on timeout
                raise NavigationFailure(url, "timed out") from exc
            except ClientError as exc:
                attempts += 1
                if attempts > self.config.retry_times:
                    raise NavigationFailure(url, str(exc)) from exc
                backoff = min(2**attempts, 60)
                logger.debug("Retry %d/%d for %s after %d s", attempts, self.config.retry_times, url, backoff)
                await asyncio.sleep(backoff)

    async def adopt_cookies(self, cookies: List[Cookie]) -> None:
        # same aiohttp session as the HTTP login: the jar already holds them
        return None

    async def browser_login(self, site: SiteConfig, credentials: Credentials, settle: float) -> bool:
        """Without a script engine the form cannot be driven; check the account page instead."""
        await self._fetch(site.absolute(site.login_path))
        if settle:
            await asyncio.sleep(settle)
        try:
            account = await self._fetch(site.absolute(site.account_path))
        except NavigationFailure as exc:
            logger.warning("Account page check failed: %s", exc)
            return False
        marker = BeautifulSoup(account.content, "html.parser").select_one(site.logged_in_selector)
        return marker is not None
