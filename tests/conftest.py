# File: tests/conftest.py
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any, Callable

import pytest
from aiohttp import web

from catalog_scout.config import CrawlerConfig
from catalog_scout.crawler.models import PageData
from catalog_scout.logger import init_logging

PRODUCT_HTML = """
<html><head>
<meta name="description" content="Linen blend drapery fabric">
<meta name="keywords" content="linen, drapery">
<link rel="canonical" href="/product/kv-1001.html">
<meta property="og:image" content="https://cdn.example.com/kv-1001-og.jpg">
<script type="application/ld+json">
{"@context": "https://schema.org", "@type": "Product", "sku": "LD-9999", "name": "From JSON-LD",
 "offers": {"@type": "Offer", "availability": "https://schema.org/InStock"}}
</script>
</head><body>
<div class="product-info-main">
  <h1 class="page-title">Sunlit Linen</h1>
  <div class="product-brand">Kravet Couture</div>
  <div class="product-sku">SKU: KV-1001</div>
  <div class="product-collection">Seaside</div>
  <div class="product-description">A soft linen blend.</div>
  <div class="price-box">
    <span class="price">Trade: $42.50 per yard</span>
    <span class="price">Retail: $85.00</span>
  </div>
  <div class="stock">In Stock - 120 yards available</div>
  <div class="lead-time">3-5 business days</div>
</div>
<div class="gallery">
  <img src="/media/placeholder.png">
  <img data-zoom="/media/kv-1001-zoom.jpg" src="/media/kv-1001-small.jpg">
  <img src="/media/kv-1001-alt.jpg">
  <img data-src="/media/kv-1001-alt.jpg">
</div>
<table class="additional-attributes">
  <tr><th>Content</th><td>55% Linen, 45% Viscose</td></tr>
  <tr><th>Width</th><td>54 in</td></tr>
  <tr><th>Abrasion</th><td>30,000 double rubs</td></tr>
  <tr><th>Flame Retardant</th><td>NFPA 260</td></tr>
  <tr><th>Color</th><td>Sand</td></tr>
</table>
<ul class="certifications"><li>GREENGUARD Gold</li></ul>
<div class="coordinates"><a href="/product/kv-2002.html">Coordinate</a></div>
</body></html>
"""

LISTING_HTML = """
<html><body>
<div class="product-item"><a class="product-item-link" href="/product/a-1.html#reviews">A</a>
  <a href="/product/a-1.html"><img src="/media/a.jpg"></a></div>
<div class="product-item"><a class="product-item-link" href="https://www.kravet.com/product/b-2.html">B</a></div>
<div class="product-item"><a href="/about-us">About</a></div>
<div class="pages"><a class="next" href="?p=2">Next</a></div>
</body></html>
"""


@pytest.fixture(autouse=True)
def reset_logging():
    """Re-bind the project logger to the current stdout after every test (CliRunner swaps it)."""
    yield
    init_logging(level="DEBUG")


@pytest.fixture()
def product_page() -> PageData:
    return PageData(url="https://www.kravet.com/product/kv-1001.html", content=PRODUCT_HTML)


@pytest.fixture()
def listing_page() -> PageData:
    return PageData(url="https://www.kravet.com/shop/fabric?brand=Lee+Jofa", content=LISTING_HTML)


@pytest.fixture()
def make_config(tmp_path: Path) -> Callable[..., CrawlerConfig]:
    """
    Factory for a fast CrawlerConfig against a local test server.
    Plain HTTP rendering, no settle delays, no retries, persistence off.
    """

    def factory(base_url: str = "https://www.kravet.com", **overrides: Any) -> CrawlerConfig:
        data: dict[str, Any] = {
            "credentials": {"identity": "buyer@example.com", "secret": "s3cret"},
            "renderer": "http",
            "navigation_timeout": 5.0,
            "listing_wait_timeout": 0,
            "login_settle": 0,
            "product_settle": 0,
            "retry_times": 0,
            "skip_persistence": True,
            "output": tmp_path / "results.jsonl",
            "site": {"base_url": base_url},
        }
        data.update(overrides)
        return CrawlerConfig(**data)

    return factory


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()
