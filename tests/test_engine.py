# File: tests/test_engine.py
"""End-to-end crawls against a local catalog site (login, listings, products, store)."""
from __future__ import annotations

import asyncio
import json
from collections import Counter
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web

from catalog_scout.engine import start_crawl
from catalog_scout.errors import AuthFailure
from conftest import serve_app

#: product links per listing page
PAGE_SIZE = 8
#: listing pages per brand
PAGES = 3
#: query value of each brand's listing filter → product slug prefix
PREFIX = {"": "kv", "Lee Jofa": "lj"}


class CatalogSite:
    """State of the fake site: request counters and the upserted rows."""

    def __init__(self, *, login_ok: bool = True, extra_links: tuple[str, ...] = ()) -> None:
        self.login_ok = login_ok
        self.extra_links = extra_links
        self.hits: Counter[str] = Counter()
        self.rows: dict[str, dict] = {}


def build_site(state: CatalogSite) -> web.Application:
    app = web.Application()

    async def login_page(_):
        return web.Response(
            text='<form><input name="form_key" value="fk"></form>', content_type="text/html"
        )

    async def login_post(_):
        if state.login_ok:
            resp = web.Response(status=302, headers={"Location": "/customer/account/"})
            resp.set_cookie("PHPSESSID", "sess")
            return resp
        return web.Response(status=302, headers={"Location": "/customer/account/login/"})

    async def account(_):
        return web.Response(text="<p>Sign in</p>", content_type="text/html")

    async def listing(request: web.Request):
        brand = request.query.get("brand", "")
        page = int(request.query.get("p", "1"))
        prefix = PREFIX[brand]
        state.hits[f"listing:{prefix}"] += 1
        links = [f"/product/{prefix}-{page}-{i}.html" for i in range(PAGE_SIZE)]
        if page == 1:
            links = list(state.extra_links) + links
        # one repeated link per page, plus a fragment variant
        links.append(links[-1] + "#details")
        items = "".join(f'<div class="product-item"><a class="product-item-link" href="{h}">P</a></div>' for h in links)
        nxt = ""
        if page < PAGES:
            query = f"brand={brand.replace(' ', '+')}&p={page + 1}" if brand else f"p={page + 1}"
            nxt = f'<a class="next" href="/shop/fabric?{query}">Next</a>'
        return web.Response(text=f"<html><body>{items}{nxt}</body></html>", content_type="text/html")

    async def product(request: web.Request):
        slug = request.match_info["slug"].removesuffix(".html")
        state.hits[slug.split("-")[0]] += 1
        if slug == "gone":
            raise web.HTTPNotFound()
        if slug == "zz":
            return web.Response(text="<h1>Mystery swatch</h1>", content_type="text/html")
        html = (
            f'<h1 class="page-title">Fabric {slug}</h1>'
            f'<div class="product-sku">SKU: {slug.upper()}</div>'
            '<span class="price">Trade: $42.50 per yard</span>'
            '<div class="stock">In Stock</div>'
        )
        return web.Response(text=html, content_type="text/html")

    async def upsert(request: web.Request):
        payload = await request.json()
        state.rows.setdefault(payload[request.query["on_conflict"]], {}).update(payload)
        return web.Response(status=201)

    app.router.add_get("/customer/account/login/", login_page)
    app.router.add_post("/customer/account/loginPost/", login_post)
    app.router.add_get("/customer/account/", account)
    app.router.add_get("/shop/fabric", listing)
    app.router.add_get("/product/{slug}", product)
    app.router.add_post("/rest/v1/item_latest", upsert)
    return app


@pytest_asyncio.fixture
async def site(request, unused_tcp_port: int) -> AsyncIterator[tuple[str, CatalogSite]]:
    state = getattr(request, "param", None) or CatalogSite()
    async for url in serve_app(build_site(state), unused_tcp_port):
        yield url, state


async def run(cfg):
    return await asyncio.wait_for(start_crawl(cfg), timeout=30)


@pytest.mark.asyncio()
async def test_cap_bounds_product_fetches_per_brand(site, make_config, tmp_path):
    base, state = site
    cfg = make_config(base, brands=["kravet", "leejofa"], max_products_per_brand=5, max_concurrency=3)
    stats = await run(cfg)

    assert stats.session == "http"
    assert state.hits["kv"] == 5
    assert state.hits["lj"] == 5
    # cap reached on page 1: pagination stops
    assert state.hits["listing:kv"] == 1
    assert state.hits["listing:lj"] == 1
    assert stats.scraped == 10
    assert stats.by_brand["kravet"].scraped == 5
    assert stats.by_brand["leejofa"].scraped == 5
    assert stats.saved == 0
    assert stats.errors == 0
    assert "persistence" not in stats.failures

    lines = (tmp_path / "results.jsonl").read_text(encoding="utf-8").splitlines()
    events = [json.loads(line) for line in lines]
    assert len(events) == 10
    assert {e["brand_key"] for e in events} == {"kravet", "leejofa"}
    assert len({e["record"]["sku"] for e in events}) == 10


@pytest.mark.asyncio()
async def test_pagination_dedup_and_persistence(site, make_config):
    base, state = site
    cfg = make_config(
        base,
        brands=["kravet"],
        max_products_per_brand=12,
        max_concurrency=2,
        skip_persistence=False,
        storage={"url": base, "key": "test-key"},
    )
    stats = await run(cfg)

    # 8 from page 1, 4 from page 2, page 3 never requested
    assert state.hits["listing:kv"] == 2
    assert state.hits["kv"] == 12
    assert stats.scraped == 12
    assert stats.saved == 12
    assert len(state.rows) == 12
    assert state.rows["KV-1-0"]["price_value"] == 42.5
    assert state.rows["KV-1-0"]["data"]["brand"] == "Kravet"


@pytest.mark.asyncio()
async def test_pagination_runs_to_the_last_page(site, make_config):
    base, state = site
    stats = await run(make_config(base, brands=["kravet"], max_products_per_brand=100))
    assert state.hits["listing:kv"] == PAGES
    assert stats.scraped == PAGES * PAGE_SIZE


@pytest.mark.asyncio()
@pytest.mark.parametrize("site", [CatalogSite(extra_links=("/product/zz", "/product/gone"))], indirect=True)
async def test_failed_pages_are_counted_and_never_stored(site, make_config):
    base, state = site
    cfg = make_config(
        base,
        brands=["kravet"],
        max_products_per_brand=4,
        skip_persistence=False,
        storage={"url": base, "key": "test-key"},
    )
    stats = await run(cfg)

    assert state.hits["zz"] == 1
    assert state.hits["gone"] == 1
    assert stats.scraped == 2
    assert stats.saved == 2
    assert stats.errors == 2
    assert stats.failures["rejected"] == 1
    assert stats.failures["navigation"] == 1
    assert sorted(state.rows) == ["KV-1-0", "KV-1-1"]


@pytest.mark.asyncio()
@pytest.mark.parametrize("site", [CatalogSite(login_ok=False)], indirect=True)
async def test_unauthenticated_crawl_continues(site, make_config):
    base, _ = site
    stats = await run(make_config(base, brands=["kravet"], max_products_per_brand=2))
    assert stats.session == "unauthenticated"
    assert stats.scraped == 2


@pytest.mark.asyncio()
@pytest.mark.parametrize("site", [CatalogSite(login_ok=False)], indirect=True)
async def test_require_auth_aborts(site, make_config):
    base, state = site
    with pytest.raises(AuthFailure):
        await run(make_config(base, brands=["kravet"], require_auth=True))
    assert state.hits["listing:kv"] == 0
