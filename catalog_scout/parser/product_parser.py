# === FILE: catalog_scout/parser/product_parser.py ===
"""Product detail page extraction.

:func:`extract_product` reads a rendered DOM snapshot and returns a
:data:`~catalog_scout.records.RawFieldMap`. It never fails on missing markup:
templates differ per brand, so every field is looked up through an ordered
list of selectors and absent fields are simply left out of the map.

Label conventions of the returned map:

* ``sku.structured`` / ``sku.element`` / ``sku.jsonld`` / ``sku.meta`` /
  ``sku.url``: identifier candidates, one per source;
* ``price.texts``: text of every price-bearing element, in page order;
* ``images.primary`` and ``images``: resolved image URLs;
* ``spec:<label>``: one entry per specification row;
* ``structured_data``: raw JSON-LD script bodies.
"""
from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag

from catalog_scout.crawler.models import PageData
from catalog_scout.parser.heuristics import sku_from_url
from catalog_scout.records import RawFieldMap

__all__: Sequence[str] = ("extract_product", "json_ld_objects", "SPEC_PREFIX")

SPEC_PREFIX = "spec:"

# Ordered selector lists: the first non-empty match wins.
STRUCTURED_SKU_SELECTORS = ('[itemprop="sku"]', '[itemprop="productID"]', "[data-sku]", "[data-product-sku]")
SKU_ELEMENT_SELECTORS = (".product-sku", ".sku-value", ".product-info-main .sku .value", ".product-info-main .value")
NAME_SELECTORS = ("h1.page-title", "h1.product-name", '[itemprop="name"]', "h1")
BRAND_SELECTORS = (".product-brand", ".brand-name", '[itemprop="brand"]')
COLLECTION_SELECTORS = (".product-collection", ".collection-name")
PATTERN_SELECTORS = (".product-pattern", ".pattern-name")
COLORWAY_SELECTORS = (".product-colorway", ".color-name")
DESCRIPTION_SELECTORS = (
    ".product.attribute.description .value",
    ".product-description",
    '[itemprop="description"]',
)
PRICE_SELECTOR = ".price, .product-price, [data-price-type]"
AVAILABILITY_SELECTORS = (".stock", ".availability", "[data-availability]")
QUANTITY_SELECTORS = (".stock-qty", ".qty-available", "[data-stock-qty]")
LEAD_TIME_SELECTORS = (".lead-time", "[data-lead-time]")

#: gallery selector groups, scanned in order
IMAGE_GROUPS = (
    '.product-image img, [itemprop="image"]',
    ".gallery img, .gallery-placeholder img",
    ".fotorama__img, .fotorama__stage img",
    ".product-media img, .product-gallery img",
)
#: full resolution > zoom > large > lazy-load source > rendered source
IMAGE_ATTRS = (
    "data-full", "data-full-image", "data-fullsize",
    "data-zoom", "data-zoom-image",
    "data-large", "data-large-image",
    "data-src", "data-lazy", "data-original",
    "src",
)
PRIMARY_IMAGE_SELECTORS = ('img[itemprop="image"]', '[itemprop="image"]', 'meta[property="og:image"]', ".gallery-placeholder img")

SPEC_ROW_SELECTOR = ".product-attributes tr, .additional-attributes tr, .specs-table tr, table.data.table tr"
SPEC_DL_SELECTOR = ".product-specs dl, .specifications dl, .product-details dl, dl.product-specs"
SPEC_LI_SELECTOR = ".product-specs li, .specifications li, .product-details li"

CERTIFICATION_SELECTOR = ".certifications li, .product-certifications li, .certifications img[alt], .product-certifications img[alt]"
COORDINATE_SELECTOR = ".coordinates a[href], .coordinating-products a[href], .product-coordinates a[href]"


def _text(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    return " ".join(node.get_text(" ", strip=True).split())


def _attr(node: Optional[Tag], name: str) -> str:
    if node is None:
        return ""
    value = node.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def _first_text(soup: BeautifulSoup, selectors: Sequence[str]) -> str:
    for selector in selectors:
        for node in soup.select(selector):
            text = _attr(node, "content") or _text(node)
            if text:
                return text
    return ""


def _first_attr(soup: BeautifulSoup, selector: str, attr: str) -> str:
    return _attr(soup.select_one(selector), attr)


def _outermost(nodes: List[Tag]) -> List[Tag]:
    """Drop nodes nested inside another matched node (price wrappers nest)."""
    matched = {id(n) for n in nodes}
    return [n for n in nodes if not any(id(p) in matched for p in n.parents)]


# --------------------------------------------------------------------------- #
# JSON-LD                                                                     #
# --------------------------------------------------------------------------- #


def json_ld_objects(blocks: Sequence[str]) -> List[Dict[str, Any]]:
    """Parse JSON-LD bodies into a flat list of objects (``@graph`` unrolled)."""
    objects: List[Dict[str, Any]] = []

    def walk(node: Any) -> None:
        if isinstance(node, list):
            for item in node:
                walk(item)
        elif isinstance(node, dict):
            objects.append(node)
            if "@graph" in node:
                walk(node["@graph"])

    for body in blocks:
        try:
            walk(json.loads(body))
        except (TypeError, ValueError):
            continue
    return objects


def _is_product(obj: Dict[str, Any]) -> bool:
    kind = obj.get("@type")
    kinds = kind if isinstance(kind, list) else [kind]
    return any(str(k).lower() in ("product", "productmodel", "individualproduct") for k in kinds)


def _ld_value(obj: Dict[str, Any], key: str) -> str:
    value = obj.get(key)
    if isinstance(value, dict):
        value = value.get("name") or value.get("@id")
    if isinstance(value, (int, float)):
        value = str(value)
    return value.strip() if isinstance(value, str) else ""


def _ld_offers(obj: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    offers = obj.get("offers")
    for offer in offers if isinstance(offers, list) else [offers]:
        if isinstance(offer, dict):
            yield offer


# --------------------------------------------------------------------------- #
# Field groups                                                                #
# --------------------------------------------------------------------------- #


def _resolve_image(node: Tag, base: str) -> str:
    if node.name == "meta":
        src = _attr(node, "content")
        return urljoin(base, src) if src else ""
    for attr in IMAGE_ATTRS:
        value = _attr(node, attr)
        if value and not value.startswith("data:"):
            return urljoin(base, value)
    return ""


def _images(soup: BeautifulSoup, base: str) -> List[str]:
    urls: List[str] = []
    for group in IMAGE_GROUPS:
        for node in soup.select(group):
            url = _resolve_image(node, base)
            if url:
                urls.append(url)
    return urls


def _primary_image(soup: BeautifulSoup, base: str) -> str:
    for selector in PRIMARY_IMAGE_SELECTORS:
        node = soup.select_one(selector)
        if node is not None:
            url = _resolve_image(node, base)
            if url:
                return url
    return ""


def _specifications(soup: BeautifulSoup) -> Dict[str, str]:
    """Table rows, then definition lists, then ``Key: Value`` list items; later wins."""
    specs: Dict[str, str] = {}
    for row in soup.select(SPEC_ROW_SELECTOR):
        key = _text(row.select_one("th") or row.select_one("td:first-child"))
        cells = row.select("td")
        value = _text(cells[-1]) if cells else ""
        if key and value and not (len(cells) == 1 and row.select_one("th") is None):
            specs[key.rstrip(":")] = value
    for dl in soup.select(SPEC_DL_SELECTOR):
        for dt in dl.select("dt"):
            dd = dt.find_next_sibling("dd")
            key, value = _text(dt), _text(dd)
            if key and value:
                specs[key.rstrip(":")] = value
    for li in soup.select(SPEC_LI_SELECTOR):
        key, sep, value = _text(li).partition(":")
        if sep and key.strip() and value.strip():
            specs[key.strip()] = value.strip()
    return specs


def _certifications(soup: BeautifulSoup) -> List[str]:
    found: List[str] = []
    for node in soup.select(CERTIFICATION_SELECTOR):
        label = _attr(node, "alt") if node.name == "img" else _text(node)
        if label and label not in found:
            found.append(label)
    return found


def _coordinates(soup: BeautifulSoup, base: str) -> List[str]:
    found: List[str] = []
    for node in soup.select(COORDINATE_SELECTOR):
        href = _attr(node, "href")
        if not href or href.startswith(("#", "javascript:")):
            continue
        url = urljoin(base, href)
        if url not in found:
            found.append(url)
    return found


# --------------------------------------------------------------------------- #
# Public function                                                             #
# --------------------------------------------------------------------------- #


def extract_product(page: PageData) -> RawFieldMap:
    """Read every known field of a product page into a raw field map."""
    soup = BeautifulSoup(page.content, "html.parser")
    base = page.url
    raw: RawFieldMap = {}

    def put(label: str, value: str | List[str]) -> None:
        if value:
            raw[label] = value

    ld_blocks = [s.string or s.get_text() for s in soup.select('script[type="application/ld+json"]')]
    ld_blocks = [b for b in ld_blocks if b and b.strip()]
    ld_objects = json_ld_objects(ld_blocks)
    product_ld = next((o for o in ld_objects if _is_product(o)), {})

    # identity candidates, one per source
    structured = ""
    for selector in STRUCTURED_SKU_SELECTORS:
        node = soup.select_one(selector)
        if node is None:
            continue
        structured = _attr(node, "content") or _attr(node, "data-sku") or _attr(node, "data-product-sku") or _text(node)
        if structured:
            break
    put("sku.structured", structured)
    put("sku.element", _first_text(soup, SKU_ELEMENT_SELECTORS))
    put("sku.jsonld", _ld_value(product_ld, "sku") or _ld_value(product_ld, "productID") or _ld_value(product_ld, "mpn"))
    put("sku.meta", _first_attr(soup, 'meta[property="product:retailer_item_id"]', "content"))
    put("sku.url", sku_from_url(urlparse(page.url).path))

    put("name", _first_text(soup, NAME_SELECTORS) or _ld_value(product_ld, "name")
        or _first_attr(soup, 'meta[property="og:title"]', "content"))
    put("brand", _first_text(soup, BRAND_SELECTORS) or _ld_value(product_ld, "brand"))
    put("collection", _first_text(soup, COLLECTION_SELECTORS))
    put("pattern", _first_text(soup, PATTERN_SELECTORS))
    put("colorway", _first_text(soup, COLORWAY_SELECTORS) or _ld_value(product_ld, "color"))
    put("description", _first_text(soup, DESCRIPTION_SELECTORS) or _ld_value(product_ld, "description"))

    put("price.texts", [t for t in (_text(n) for n in _outermost(soup.select(PRICE_SELECTOR))) if t])

    put("images.primary", _primary_image(soup, base))
    put("images", _images(soup, base))

    for key, value in _specifications(soup).items():
        raw[f"{SPEC_PREFIX}{key}"] = value

    put("availability", _first_text(soup, AVAILABILITY_SELECTORS))
    schema_availability = next(
        (_ld_value(offer, "availability") for offer in _ld_offers(product_ld) if offer.get("availability")),
        "",
    )
    put("availability.schema", schema_availability or _first_attr(soup, 'link[itemprop="availability"]', "href"))
    put("availability.quantity", _first_text(soup, QUANTITY_SELECTORS))
    put("availability.lead_time", _first_text(soup, LEAD_TIME_SELECTORS))

    put("certifications", _certifications(soup))
    put("coordinates", _coordinates(soup, base))

    put("meta.description", _first_attr(soup, 'meta[name="description"]', "content"))
    put("meta.keywords", _first_attr(soup, 'meta[name="keywords"]', "content"))
    canonical = _first_attr(soup, 'link[rel="canonical"]', "href")
    put("meta.canonical", urljoin(base, canonical) if canonical else "")
    put("structured_data", ld_blocks)
    return raw
