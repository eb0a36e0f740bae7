# File: tests/test_session.py
"""Login tiers against a local aiohttp server mimicking the customer account endpoints."""
from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import ClientSession, CookieJar, web

from catalog_scout.crawler.fetcher import HttpRenderer
from catalog_scout.crawler.session import LoginStatus, SessionManager, extract_form_key
from catalog_scout.errors import LoginPageError
from conftest import serve_app

LOGIN_FORM = """
<form action="/customer/account/loginPost/" method="post">
  <input name="form_key" type="hidden" value="fk-123">
  <input name="login[username]"><input name="login[password]" type="password">
  <button type="submit">Sign In</button>
</form>
"""


def build_app(mode: str, posted: list) -> web.Application:
    """
    mode:
      cookie   – POST sets PHPSESSID
      redirect – POST redirects to the account page
      reject   – POST redirects back to the login page
      marker   – like reject, but the account page shows the logged-in marker
      broken   – the login page itself returns 404
    """
    app = web.Application()

    async def login_page(_):
        if mode == "broken":
            raise web.HTTPNotFound()
        return web.Response(text=LOGIN_FORM, content_type="text/html")

    async def login_post(request):
        posted.append(dict(await request.post()))
        if mode == "cookie":
            resp = web.Response(text="ok", content_type="text/html")
            resp.set_cookie("PHPSESSID", "sess-1")
            return resp
        if mode == "redirect":
            return web.Response(status=302, headers={"Location": "/customer/account/"})
        return web.Response(status=302, headers={"Location": "/customer/account/login/"})

    async def account(_):
        if mode == "marker":
            return web.Response(
                text='<a href="/customer/account/logout/">Sign Out</a>', content_type="text/html"
            )
        return web.Response(text="<h1>Please sign in</h1>", content_type="text/html")

    app.router.add_get("/customer/account/login/", login_page)
    app.router.add_post("/customer/account/loginPost/", login_post)
    app.router.add_get("/customer/account/", account)
    return app


@pytest_asyncio.fixture
async def login_site(request, unused_tcp_port: int) -> AsyncIterator[tuple[str, list]]:
    posted: list = []
    async for url in serve_app(build_app(request.param, posted), unused_tcp_port):
        yield url, posted


async def establish(config):
    async with ClientSession(cookie_jar=CookieJar(unsafe=True)) as http:
        manager = SessionManager(config, http, HttpRenderer(http, config))
        return await manager.establish(config.credentials)


def test_extract_form_key():
    assert extract_form_key(LOGIN_FORM) == "fk-123"
    assert extract_form_key("<form></form>") == ""


@pytest.mark.asyncio()
@pytest.mark.parametrize("login_site", ["cookie"], indirect=True)
async def test_http_login_by_session_cookie(login_site, make_config):
    base, posted = login_site
    handle = await establish(make_config(base))
    assert handle.status is LoginStatus.HTTP
    assert handle.ready
    assert any(c["name"] == "PHPSESSID" and c["value"] == "sess-1" for c in handle.cookies)
    assert posted[0]["form_key"] == "fk-123"
    assert posted[0]["login[username]"] == "buyer@example.com"
    assert posted[0]["login[password]"] == "s3cret"


@pytest.mark.asyncio()
@pytest.mark.parametrize("login_site", ["redirect"], indirect=True)
async def test_http_login_by_redirect(login_site, make_config):
    base, _ = login_site
    handle = await establish(make_config(base))
    assert handle.status is LoginStatus.HTTP


@pytest.mark.asyncio()
@pytest.mark.parametrize("login_site", ["reject"], indirect=True)
async def test_unconfirmed_login_is_unauthenticated(login_site, make_config):
    base, posted = login_site
    handle = await establish(make_config(base))
    assert handle.status is LoginStatus.UNAUTHENTICATED
    assert not handle.ready
    assert len(posted) == 1


@pytest.mark.asyncio()
@pytest.mark.parametrize("login_site", ["marker"], indirect=True)
async def test_fallback_confirms_by_marker(login_site, make_config):
    base, _ = login_site
    handle = await establish(make_config(base))
    assert handle.status is LoginStatus.BROWSER


@pytest.mark.asyncio()
@pytest.mark.parametrize("login_site", ["broken"], indirect=True)
async def test_unloadable_login_page_is_fatal(login_site, make_config):
    base, _ = login_site
    with pytest.raises(LoginPageError):
        await establish(make_config(base))
