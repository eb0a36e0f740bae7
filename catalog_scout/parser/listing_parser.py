# catalog_scout/parser/listing_parser.py
"""
Listing page extraction: product detail links and the next-page link.
"""
from __future__ import annotations

from typing import List, Optional, Sequence
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag

from catalog_scout.crawler.models import ListingPage, PageData

__all__: Sequence[str] = (
    "LISTING_READY_SELECTOR",
    "PRODUCT_LINK_SELECTORS",
    "NEXT_PAGE_SELECTORS",
    "extract_listing",
    "is_detail_url",
    "resolve_next_url",
)

#: markup that signals the product grid has rendered
LISTING_READY_SELECTOR = ".product-item, .product-card, [data-product-id]"

PRODUCT_LINK_SELECTORS = (
    "a.product-item-link",
    "a.product-card-link",
    ".product-item a[href]",
    ".product-name a",
    "[data-product-id] a[href]",
)
NEXT_PAGE_SELECTORS = ("a.next", 'a[rel="next"]', ".pages-item-next a")

DETAIL_PATH_MARKERS = ("/product/", "/fabric/", "/wallcovering/", "/trim/")


def is_detail_url(url: str) -> bool:
    """True for URLs that look like product detail pages."""
    path = urlparse(url).path
    return any(marker in path for marker in DETAIL_PATH_MARKERS)


def resolve_next_url(base_url: str, href: Optional[str], page_url: Optional[str] = None) -> Optional[str]:
    """Resolve *href* against the site origin; ``#``-only and empty hrefs are absent.

    Query-only or path-relative hrefs (``?p=2``) resolve against *page_url* when given.
    """
    if href is None:
        return None
    href = href.strip()
    if not href or href.startswith("#") or href.lower().startswith("javascript:"):
        return None
    if page_url and not href.startswith("/") and "://" not in href:
        return urljoin(page_url, href)
    return urljoin(base_url.rstrip("/") + "/", href)


def _product_links(soup: BeautifulSoup, page_url: str) -> List[str]:
    links: List[str] = []
    # one combined query keeps document order across the fallbacks
    for node in soup.select(", ".join(PRODUCT_LINK_SELECTORS)):
        if not isinstance(node, Tag):
            continue
        href = node.get("href")
        if not isinstance(href, str) or not href.strip():
            continue
        absolute, _ = urldefrag(urljoin(page_url, href.strip()))
        if is_detail_url(absolute) and absolute not in links:
            links.append(absolute)
    return links


def extract_listing(page: PageData, base_url: str) -> ListingPage:
    """Collect detail links (page order, unique) and the next-page URL."""
    soup = BeautifulSoup(page.content, "html.parser")
    next_url: Optional[str] = None
    for selector in NEXT_PAGE_SELECTORS:
        node = soup.select_one(selector)
        if node is None:
            continue
        href = node.get("href")
        next_url = resolve_next_url(base_url, href if isinstance(href, str) else None, page.url)
        if next_url:
            break
    return ListingPage(product_urls=_product_links(soup, page.url), next_url=next_url)
