# File: catalog_scout/brands.py
"""catalog_scout.brands: Static brand table and crawl target resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List
from urllib.parse import urljoin

__all__ = ["BrandInfo", "CrawlTarget", "BRAND_TABLE", "resolve_targets", "display_name"]


@dataclass(frozen=True, slots=True)
class BrandInfo:
    """Display name and listing path (brand filter embedded) of one house brand."""

    name: str
    listing_path: str


@dataclass(frozen=True, slots=True)
class CrawlTarget:
    """One configured brand resolved against the site origin."""

    key: str
    name: str
    base_url: str
    listing_url: str


BRAND_TABLE: Dict[str, BrandInfo] = {
    "kravet": BrandInfo("Kravet", "/shop/fabric"),
    "leejofa": BrandInfo("Lee Jofa", "/shop/fabric?brand=Lee+Jofa"),
    "brunschwig": BrandInfo("Brunschwig & Fils", "/shop/fabric?brand=Brunschwig+%26+Fils"),
    "gpjbaker": BrandInfo("GP & J Baker", "/shop/fabric?brand=GP+%26+J+Baker"),
    "andrewmartin": BrandInfo("Andrew Martin", "/shop/fabric?brand=Andrew+Martin"),
    "coleson": BrandInfo("Cole & Son", "/shop/fabric?brand=Cole+%26+Son"),
}


def resolve_targets(keys: Iterable[str], base_url: str) -> List[CrawlTarget]:
    """Build the immutable crawl targets for *keys*, in configuration order."""
    base = base_url.rstrip("/")
    targets: List[CrawlTarget] = []
    for key in keys:
        info = BRAND_TABLE[key]
        targets.append(
            CrawlTarget(
                key=key,
                name=info.name,
                base_url=base,
                listing_url=urljoin(base + "/", info.listing_path.lstrip("/")),
            )
        )
    return targets


def display_name(key: str, extracted: str = "") -> str:
    """Brand table name, then the brand text found on the page, then the key itself."""
    info = BRAND_TABLE.get(key)
    if info is not None:
        return info.name
    return extracted.strip() or key
