# catalog_scout/crawler/session.py
"""
Session manager: establish the authenticated trade session before crawling.

Two tiers, tried in order:

1. HTTP login – GET the login page for its ``form_key`` anti-forgery token,
   then POST the credentials with redirects disabled. The response counts as
   authenticated when it sets a known session cookie or redirects anywhere
   but back to the login page.
2. Browser login – the renderer fills and submits the form, waits, and
   looks for a DOM marker only logged-in customers see.

The outcome is always an explicit :class:`SessionHandle`; only a login page
that cannot be loaded at all is fatal (:class:`LoginPageError`).
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
from urllib.parse import urlparse

from aiohttp import ClientError, ClientSession, CookieJar
from bs4 import BeautifulSoup

from catalog_scout.config import Credentials, CrawlerConfig
from catalog_scout.crawler.renderer import Cookie, Renderer
from catalog_scout.errors import LoginPageError, NavigationFailure
from catalog_scout.logger import logger

__all__ = ["LoginStatus", "SessionHandle", "SessionManager", "extract_form_key", "jar_cookies"]


class LoginStatus(str, Enum):
    HTTP = "http"
    BROWSER = "browser"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(slots=True)
class SessionHandle:
    status: LoginStatus
    cookies: List[Cookie] = field(default_factory=list)

    @property
    def ready(self) -> bool:
        """True when some strategy confirmed the login."""
        return self.status is not LoginStatus.UNAUTHENTICATED


def extract_form_key(html: str) -> str:
    """Value of the hidden ``form_key`` input, or ``""``."""
    node = BeautifulSoup(html, "html.parser").select_one('input[name="form_key"]')
    value = node.get("value") if node is not None else None
    return value.strip() if isinstance(value, str) else ""


def jar_cookies(jar: CookieJar, origin: str) -> List[Cookie]:
    """Export an aiohttp cookie jar in Playwright's cookie shape."""
    host = urlparse(origin).hostname or ""
    cookies: List[Cookie] = []
    for morsel in jar:
        domain = morsel["domain"] or host
        if not domain:
            continue
        cookies.append(
            {
                "name": morsel.key,
                "value": morsel.value,
                "domain": domain,
                "path": morsel["path"] or "/",
            }
        )
    return cookies


class SessionManager:
    """Runs the two login strategies and reports which one, if any, worked."""

    def __init__(self, config: CrawlerConfig, http: ClientSession, renderer: Renderer) -> None:
        self.config = config
        self.site = config.site
        self.http = http
        self.renderer = renderer

    async def establish(self, credentials: Credentials) -> SessionHandle:
        cookies = await self.http_login(credentials)
        if cookies is not None:
            await self.renderer.adopt_cookies(cookies)
            logger.info("HTTP login successful")
            return SessionHandle(LoginStatus.HTTP, cookies)

        logger.warning("HTTP login not confirmed, trying browser login")
        try:
            confirmed = await self.renderer.browser_login(self.site, credentials, self.config.login_settle)
        except NavigationFailure as exc:
            raise LoginPageError(f"login page could not be loaded: {exc}") from exc
        if confirmed:
            logger.info("Browser login successful")
            return SessionHandle(LoginStatus.BROWSER)

        logger.warning("No login strategy confirmed a session; prices may be retail only")
        return SessionHandle(LoginStatus.UNAUTHENTICATED)

    async def http_login(self, credentials: Credentials) -> Optional[List[Cookie]]:
        """Cookies of the authenticated session, or None when not confirmed."""
        login_url = self.site.absolute(self.site.login_path)
        post_url = self.site.absolute(self.site.login_post_path)
        try:
            async with self.http.get(login_url) as resp:
                html = await resp.text()
            form = {
                "form_key": extract_form_key(html),
                "login[username]": credentials.identity,
                "login[password]": credentials.secret.get_secret_value(),
                "send": "",
            }
            async with self.http.post(post_url, data=form, allow_redirects=False) as resp:
                status = resp.status
                location = resp.headers.get("Location", "")
                set_names = set(resp.cookies.keys())
        except (ClientError, asyncio.TimeoutError) as exc:
            logger.warning("HTTP login error: %s", exc)
            return None

        session_cookie = bool(set_names & set(self.site.session_cookies))
        redirected = 300 <= status < 400 and bool(location) and "login" not in location.lower()
        logger.debug("Login POST -> %s (location=%r, cookies=%s)", status, location, sorted(set_names))
        if session_cookie or redirected:
            return jar_cookies(self.http.cookie_jar, self.site.origin)
        return None
