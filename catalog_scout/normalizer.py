# File: catalog_scout/normalizer.py
"""catalog_scout.normalizer: raw field map → canonical :class:`ProductRecord`."""

from __future__ import annotations

from typing import Dict, List, Mapping, Sequence, Union

from catalog_scout.brands import display_name
from catalog_scout.parser.heuristics import (
    MIN_SKU_LENGTH,
    SKU_SOURCES,
    classify_availability,
    clean_sku,
    group_specifications,
    order_images,
    parse_lead_time,
    parse_quantity,
    resolve_sku,
    split_prices,
)
from catalog_scout.parser.product_parser import SPEC_PREFIX, json_ld_objects
from catalog_scout.records import Availability, ProductRecord, RawFieldMap, Rejected

__all__ = ["normalize", "Normalized"]

Normalized = Union[ProductRecord, Rejected]

#: first-class field → specification labels accepted as synonyms
SPEC_SYNONYMS: Dict[str, Sequence[str]] = {
    "colorway": ("Color", "Colorway", "Colour", "Color Name"),
    "pattern": ("Pattern", "Pattern Name", "Design"),
    "collection": ("Collection", "Book", "Collection Name"),
}

#: labels consumed by first-class fields; anything else lands in ``extra``
KNOWN_LABELS = frozenset(
    (
        *SKU_SOURCES,
        "name", "brand", "collection", "pattern", "colorway", "description",
        "price.texts", "images.primary", "images",
        "availability", "availability.schema", "availability.quantity", "availability.lead_time",
        "certifications", "coordinates",
        "meta.description", "meta.keywords", "meta.canonical", "structured_data",
    )
)


def _text(raw: RawFieldMap, label: str) -> str:
    value = raw.get(label, "")
    if isinstance(value, list):
        value = " ".join(value)
    return " ".join(value.split())


def _texts(raw: RawFieldMap, label: str) -> List[str]:
    value = raw.get(label, [])
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [v for v in value if v and v.strip()]


def _spec_lookup(specs: Mapping[str, str], names: Sequence[str]) -> str:
    lowered = {k.lower(): v for k, v in specs.items()}
    for name in names:
        value = lowered.get(name.lower(), "")
        if value:
            return value
    return ""


def normalize(raw: RawFieldMap, brand: str, url: str) -> Normalized:
    """Map one raw field map onto a :class:`ProductRecord`.

    The only hard gate is identity: without a ``sku`` of at least
    ``MIN_SKU_LENGTH`` characters the page is :class:`Rejected`. Every other
    field degrades to an empty value.
    """
    candidates = [_text(raw, label) for label in SKU_SOURCES]
    sku = resolve_sku(candidates)
    if not sku:
        short = next((s for s in map(clean_sku, candidates) if s), "")
        if short:
            return Rejected(url=url, reason=f"sku {short!r} shorter than {MIN_SKU_LENGTH} characters")
        return Rejected(url=url, reason="no sku found")

    specs: Dict[str, str] = {}
    extra: Dict[str, Union[str, List[str]]] = {}
    for label, value in raw.items():
        if label.startswith(SPEC_PREFIX):
            key = label[len(SPEC_PREFIX):].strip()
            if key:
                specs[key] = " ".join(value) if isinstance(value, list) else value
        elif label not in KNOWN_LABELS:
            extra[label] = value

    tech, performance, flammability = group_specifications(specs)
    prices = split_prices(_texts(raw, "price.texts"))
    primary, images = order_images(_text(raw, "images.primary") or None, _texts(raw, "images"))

    availability_text = _text(raw, "availability")
    availability = Availability(
        status=classify_availability(availability_text, _text(raw, "availability.schema")),
        quantity=parse_quantity(_text(raw, "availability.quantity"), availability_text),
        lead_time=parse_lead_time(_text(raw, "availability.lead_time"), availability_text),
    )

    return ProductRecord(
        sku=sku,
        url=url,
        brand=display_name(brand, _text(raw, "brand")),
        name=_text(raw, "name"),
        collection=_text(raw, "collection") or _spec_lookup(specs, SPEC_SYNONYMS["collection"]),
        pattern=_text(raw, "pattern") or _spec_lookup(specs, SPEC_SYNONYMS["pattern"]),
        colorway=_text(raw, "colorway") or _spec_lookup(specs, SPEC_SYNONYMS["colorway"]),
        description=_text(raw, "description"),
        trade_price=prices.trade,
        retail_price=prices.retail,
        price_unit=prices.unit,
        price_text=prices.text,
        primary_image=primary,
        image_url=primary,
        images=images,
        specifications=specs,
        tech_details=tech,
        performance_data=performance,
        flammability=flammability,
        certifications=_texts(raw, "certifications"),
        coordinates=_texts(raw, "coordinates"),
        availability=availability,
        meta_description=_text(raw, "meta.description"),
        meta_keywords=_text(raw, "meta.keywords"),
        canonical_url=_text(raw, "meta.canonical"),
        structured_data=json_ld_objects(_texts(raw, "structured_data")),
        extra=extra,
    )
