"""catalog_scout.parser: DOM snapshot extraction for listing and product pages."""

from .listing_parser import extract_listing, resolve_next_url
from .product_parser import extract_product

__all__ = ["extract_listing", "extract_product", "resolve_next_url"]
