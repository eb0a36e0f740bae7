# File: catalog_scout/parser/heuristics.py
"""Field heuristics shared by the product extractor and the normalizer.

Every function here is pure: text in, value out. Markup differs per brand and
template, so each policy is a small ordered list of rules and the first rule
that yields a value wins.

* :func:`resolve_sku`: trust hierarchy over identifier candidates.
* :func:`split_prices`: trade / retail classification of price texts.
* :func:`classify_availability`: status from free text and schema.org.
* :func:`order_images`: dedup, placeholder filter, primary first.
* :func:`group_specifications`: keyword grouping of specification keys.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from catalog_scout.records import AvailabilityStatus

__all__: Sequence[str] = (
    "MIN_SKU_LENGTH",
    "SKU_SOURCES",
    "resolve_sku",
    "clean_sku",
    "sku_from_url",
    "PriceInfo",
    "parse_amount",
    "split_prices",
    "classify_availability",
    "parse_quantity",
    "parse_lead_time",
    "is_placeholder",
    "order_images",
    "group_specifications",
    "TECH_KEYWORDS",
    "PERFORMANCE_KEYWORDS",
    "FLAMMABILITY_KEYWORDS",
)

# --------------------------------------------------------------------------- #
# SKU                                                                         #
# --------------------------------------------------------------------------- #

MIN_SKU_LENGTH = 3

#: raw labels holding SKU candidates, most trusted first
SKU_SOURCES: Tuple[str, ...] = (
    "sku.structured",
    "sku.element",
    "sku.jsonld",
    "sku.meta",
    "sku.url",
)

_SKU_PREFIX_RE = re.compile(
    r"^\s*(?:sku|item(?:\s*(?:no\.?|number))?|style|product\s*(?:id|code)|pattern)"
    r"\s*(?:#\s*:?|:|\s)\s*",
    re.IGNORECASE,
)
_URL_SKU_RE = re.compile(r"([A-Za-z0-9][A-Za-z0-9._\-]{2,})(?:\.html?)?/?$")


def clean_sku(value: str) -> str:
    """Strip label prefixes such as ``SKU:`` or ``Item #``."""
    return _SKU_PREFIX_RE.sub("", value.strip(), count=1).strip()


def resolve_sku(candidates: Iterable[Optional[str]]) -> str:
    """First candidate still :data:`MIN_SKU_LENGTH` characters long once prefix-stripped."""
    for candidate in candidates:
        if not candidate:
            continue
        sku = clean_sku(candidate)
        if len(sku) >= MIN_SKU_LENGTH:
            return sku
    return ""


def sku_from_url(path: str) -> str:
    """Last path segment that looks like an item code (``.html`` suffix dropped)."""
    match = _URL_SKU_RE.search(path.split("?", 1)[0].split("#", 1)[0])
    if not match:
        return ""
    return re.sub(r"\.html?$", "", match.group(1), flags=re.IGNORECASE)


# --------------------------------------------------------------------------- #
# Prices                                                                      #
# --------------------------------------------------------------------------- #

TRADE_KEYWORDS: Tuple[str, ...] = ("trade", "net", "your price")
RETAIL_KEYWORDS: Tuple[str, ...] = ("retail", "list", "msrp")

_CURRENCY_AMOUNT_RE = re.compile(r"[$€£]\s*(\d[\d,]*(?:\.\d+)?)")
_BARE_AMOUNT_RE = re.compile(r"(\d[\d,]*(?:\.\d+)?)")
_UNIT_RE = re.compile(r"\bper\s+([A-Za-z]+)", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class PriceInfo:
    trade: Optional[float] = None
    retail: Optional[float] = None
    unit: str = "yard"
    text: str = ""


def parse_amount(text: str) -> Optional[float]:
    """Amount after a currency sign, else the first bare number."""
    match = _CURRENCY_AMOUNT_RE.search(text) or _BARE_AMOUNT_RE.search(text)
    if not match:
        return None
    try:
        return float(match.group(1).replace(",", ""))
    except ValueError:
        return None


def _has_keyword(text: str, keywords: Iterable[str]) -> bool:
    return any(re.search(rf"\b{re.escape(k)}\b", text) for k in keywords)


def split_prices(texts: Iterable[str]) -> PriceInfo:
    """Classify price texts into trade and retail prices.

    Keyword classification wins; the first unclassified price becomes the
    trade price only while no trade price is known.
    """
    trade: Optional[float] = None
    retail: Optional[float] = None
    seen: List[str] = []
    for raw in texts:
        text = " ".join(raw.split())
        if not text:
            continue
        amount = parse_amount(text)
        if amount is None:
            continue
        seen.append(text)
        lowered = text.lower()
        if _has_keyword(lowered, TRADE_KEYWORDS):
            trade = amount
        elif _has_keyword(lowered, RETAIL_KEYWORDS):
            retail = amount
        elif trade is None:
            trade = amount
    joined = " ".join(seen)
    unit_match = _UNIT_RE.search(joined)
    unit = unit_match.group(1).lower() if unit_match else "yard"
    return PriceInfo(trade=trade, retail=retail, unit=unit, text=joined)


# --------------------------------------------------------------------------- #
# Availability                                                                #
# --------------------------------------------------------------------------- #

_AVAILABILITY_RULES: Tuple[Tuple[AvailabilityStatus, re.Pattern[str]], ...] = (
    (
        AvailabilityStatus.DISCONTINUED,
        re.compile(r"discontinued|no longer (?:available|offered)|retired", re.IGNORECASE),
    ),
    (
        AvailabilityStatus.BACKORDER,
        re.compile(r"back\s*-?\s*order|special order|pre\s*-?\s*order|on order", re.IGNORECASE),
    ),
    (
        AvailabilityStatus.OUT_OF_STOCK,
        re.compile(
            r"out\s+of\s+stock|sold\s*out|\bunavailable\b|\bnot\b(?:\s+\w+){0,2}\s+(?:in stock|available)",
            re.IGNORECASE,
        ),
    ),
    (
        AvailabilityStatus.IN_STOCK,
        re.compile(r"\bin stock\b|\bavailable\b", re.IGNORECASE),
    ),
)

_SCHEMA_STATUS: Dict[str, AvailabilityStatus] = {
    "instock": AvailabilityStatus.IN_STOCK,
    "limitedavailability": AvailabilityStatus.IN_STOCK,
    "instoreonly": AvailabilityStatus.IN_STOCK,
    "onlineonly": AvailabilityStatus.IN_STOCK,
    "backorder": AvailabilityStatus.BACKORDER,
    "preorder": AvailabilityStatus.BACKORDER,
    "presale": AvailabilityStatus.BACKORDER,
    "discontinued": AvailabilityStatus.DISCONTINUED,
    "outofstock": AvailabilityStatus.OUT_OF_STOCK,
    "soldout": AvailabilityStatus.OUT_OF_STOCK,
}


def classify_availability(text: str = "", schema: str = "") -> AvailabilityStatus:
    """Discontinued > backorder > explicit out of stock > in stock > out of stock (default).

    *schema* is a schema.org availability value (``https://schema.org/InStock``)
    and only decides when the free text matches none of the rules.
    """
    for status, pattern in _AVAILABILITY_RULES:
        if text and pattern.search(text):
            return status
    if schema:
        key = schema.rstrip("/").rsplit("/", 1)[-1].lower()
        if key in _SCHEMA_STATUS:
            return _SCHEMA_STATUS[key]
    return AvailabilityStatus.OUT_OF_STOCK


_QUANTITY_RE = re.compile(
    r"(\d[\d,]*(?:\.\d+)?)\s*(?:yards?|yds?\.?|units?|rolls?|pieces?|pcs|meters?|available|in stock)",
    re.IGNORECASE,
)
_LEAD_TIME_RE = re.compile(
    r"(?:lead\s*time|ships\s+(?:in|within))\s*:?\s*([^.;|\n]+)", re.IGNORECASE
)


def parse_quantity(*texts: str) -> Optional[float]:
    """Stock quantity from a dedicated field (bare number) or the availability text."""
    for text in texts:
        if not text:
            continue
        match = _QUANTITY_RE.search(text)
        if match is None and re.fullmatch(r"\s*\d[\d,]*(?:\.\d+)?\s*", text):
            match = _BARE_AMOUNT_RE.search(text)
        if match:
            return float(match.group(1).replace(",", ""))
    return None


def parse_lead_time(explicit: str, text: str) -> Optional[str]:
    if explicit.strip():
        return " ".join(explicit.split())
    match = _LEAD_TIME_RE.search(text or "")
    return " ".join(match.group(1).split()) if match else None


# --------------------------------------------------------------------------- #
# Images                                                                      #
# --------------------------------------------------------------------------- #

_PLACEHOLDER_RE = re.compile(
    r"placeholder|loading|spinner|lazy[-_]?load|blank\.(?:gif|png)|spacer\.gif|pixel\.gif|/1x1[._]",
    re.IGNORECASE,
)


def is_placeholder(url: str) -> bool:
    return not url or url.startswith("data:") or bool(_PLACEHOLDER_RE.search(url))


def order_images(primary: Optional[str], urls: Iterable[str]) -> Tuple[Optional[str], List[str]]:
    """Return ``(primary, images)``: unique, placeholder-free, primary at index 0."""
    images: List[str] = []
    for url in urls:
        url = url.strip()
        if is_placeholder(url) or url in images:
            continue
        images.append(url)
    if primary:
        primary = primary.strip()
    if not primary or is_placeholder(primary):
        primary = images[0] if images else None
    if primary:
        if primary in images:
            images.remove(primary)
        images.insert(0, primary)
    return primary, images


# --------------------------------------------------------------------------- #
# Specification groups                                                        #
# --------------------------------------------------------------------------- #

TECH_KEYWORDS: Tuple[str, ...] = (
    "content", "composition", "fiber", "fibre", "width", "repeat", "weight",
    "construction", "finish", "backing", "match", "railroad", "direction",
    "origin", "country", "type", "use",
)
PERFORMANCE_KEYWORDS: Tuple[str, ...] = (
    "abrasion", "double rub", "wyzenbeek", "martindale", "lightfast", "light fast",
    "pilling", "colorfast", "crocking", "seam", "tensile", "cleaning", "care",
    "durability", "performance",
)
FLAMMABILITY_KEYWORDS: Tuple[str, ...] = (
    "flammab", "flame", "fire", "nfpa", "cal 117", "cal tb", "california",
    "bs 5852", "bs5852", "ufac", "imo", "astm e84", "crib",
)


def _matching(specs: Mapping[str, str], keywords: Sequence[str]) -> Dict[str, str]:
    return {k: v for k, v in specs.items() if any(word in k.lower() for word in keywords)}


def group_specifications(
    specs: Mapping[str, str],
) -> Tuple[Dict[str, str], Dict[str, str], Dict[str, str]]:
    """Split specifications into ``(tech, performance, flammability)`` by key keywords.

    Flammability and performance keys are checked before tech keys so that a
    key such as "Flame Retardant Finish" is not claimed by the "finish" keyword.
    """
    flammability = _matching(specs, FLAMMABILITY_KEYWORDS)
    performance = {
        k: v for k, v in _matching(specs, PERFORMANCE_KEYWORDS).items() if k not in flammability
    }
    tech = {
        k: v
        for k, v in _matching(specs, TECH_KEYWORDS).items()
        if k not in flammability and k not in performance
    }
    return tech, performance, flammability
