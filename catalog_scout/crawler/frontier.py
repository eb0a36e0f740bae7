# catalog_scout/crawler/frontier.py
"""
Frontier: discovered URLs, listing pagination and per-brand product caps.

Not thread-safe and not meant to be: the orchestrator's coordinator task is
its only writer.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, List, Optional, Set
from urllib.parse import urldefrag

from catalog_scout.brands import CrawlTarget
from catalog_scout.crawler.models import FrontierEntry, PageKind
from catalog_scout.logger import LOGGER_NAME

__all__ = ["Frontier"]

logger = logging.getLogger(LOGGER_NAME)


class Frontier:
    """Admission control over listing and product URLs.

    The per-brand cap is charged when a product URL is admitted, so the
    number of product pages fetched for a brand never exceeds
    ``max_products_per_brand`` however listing and product work interleave.
    """

    def __init__(self, max_products_per_brand: int) -> None:
        if max_products_per_brand < 1:
            raise ValueError("max_products_per_brand must be >= 1")
        self.max_products_per_brand = max_products_per_brand
        self._seen: Set[str] = set()
        self._admitted: Counter[str] = Counter()

    @staticmethod
    def _key(url: str) -> str:
        return urldefrag(url.strip())[0]

    def seen(self, url: str) -> bool:
        return self._key(url) in self._seen

    def admitted(self, brand: str) -> int:
        """Number of product URLs admitted for *brand* so far."""
        return self._admitted[brand]

    def remaining(self, brand: str) -> int:
        return max(0, self.max_products_per_brand - self._admitted[brand])

    def seed_listing(self, target: CrawlTarget) -> FrontierEntry:
        """First listing page of *target*."""
        self._seen.add(self._key(target.listing_url))
        return FrontierEntry(url=target.listing_url, kind=PageKind.LISTING, brand=target.key, page=1)

    def enqueue_products(self, urls: Iterable[str], brand: str) -> List[FrontierEntry]:
        """Admit unseen product URLs in page order, truncated to the brand's remaining cap."""
        fresh: List[str] = []
        batch: Set[str] = set()
        for url in urls:
            key = self._key(url)
            if not key or key in self._seen or key in batch:
                continue
            batch.add(key)
            fresh.append(key)
        budget = self.remaining(brand)
        if len(fresh) > budget:
            logger.debug("Brand %s: cap reached, dropping %d product URL(s)", brand, len(fresh) - budget)
        admitted = fresh[:budget]
        self._seen.update(admitted)
        self._admitted[brand] += len(admitted)
        return [FrontierEntry(url=u, kind=PageKind.PRODUCT, brand=brand) for u in admitted]

    def maybe_enqueue_next_listing(
        self, brand: str, current_page: int, next_url: Optional[str]
    ) -> Optional[FrontierEntry]:
        """Next listing page, or None when pagination for *brand* is over."""
        if not next_url:
            logger.info("Brand %s: no next page after page %d", brand, current_page)
            return None
        if self.remaining(brand) <= 0:
            logger.info("Brand %s: product cap %d reached at page %d", brand, self.max_products_per_brand, current_page)
            return None
        key = self._key(next_url)
        if key in self._seen:
            logger.debug("Brand %s: next page %s already visited", brand, key)
            return None
        self._seen.add(key)
        return FrontierEntry(url=key, kind=PageKind.LISTING, brand=brand, page=current_page + 1)
