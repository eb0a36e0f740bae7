# catalog_scout/crawler/models.py
"""
Data models for the CatalogScout crawler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


@dataclass(slots=True)
class PageData:
    """Holds the final URL and the rendered markup of a page."""

    url: str
    content: str


class PageKind(str, Enum):
    LISTING = "LISTING"
    PRODUCT = "PRODUCT"


@dataclass(frozen=True, slots=True)
class FrontierEntry:
    """One unit of crawl work. ``page`` is only set for listing entries."""

    url: str
    kind: PageKind
    brand: str
    page: Optional[int] = None


@dataclass(slots=True)
class ListingPage:
    """Product links (page order) and the resolved next-page link of a listing."""

    product_urls: List[str] = field(default_factory=list)
    next_url: Optional[str] = None
