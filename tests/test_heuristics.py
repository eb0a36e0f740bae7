# File: tests/test_heuristics.py
import pytest

from catalog_scout.parser.heuristics import (
    classify_availability,
    clean_sku,
    group_specifications,
    order_images,
    parse_amount,
    parse_lead_time,
    parse_quantity,
    resolve_sku,
    sku_from_url,
    split_prices,
)
from catalog_scout.records import AvailabilityStatus


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("SKU: KV-1001", "KV-1001"),
        ("sku# 34512.16", "34512.16"),
        ("Item #: AM100", "AM100"),
        ("Item No. BF-22", "BF-22"),
        ("Style ABC123", "ABC123"),
        ("ITEM1234", "ITEM1234"),
        ("  W3407.4  ", "W3407.4"),
    ],
)
def test_clean_sku(raw, expected):
    assert clean_sku(raw) == expected


def test_resolve_sku_first_long_enough_candidate_wins():
    assert resolve_sku([None, "", "ab", "SKU: XY-77", "LD-1"]) == "XY-77"
    assert resolve_sku(["", None]) == ""


def test_resolve_sku_skips_label_without_value():
    assert resolve_sku(["SKU:", "Item 42", "kv-1001"]) == "kv-1001"


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/product/kv-1001.html", "kv-1001"),
        ("/fabric/34512-16/", "34512-16"),
        ("/product/zz", ""),
        ("/product/abc?color=red", "abc"),
    ],
)
def test_sku_from_url(path, expected):
    assert sku_from_url(path) == expected


def test_parse_amount():
    assert parse_amount("$1,299.50") == 1299.5
    assert parse_amount("Price 42") == 42.0
    assert parse_amount("Call for price") is None


def test_trade_price_with_unit():
    info = split_prices(["Trade: $42.50 per yard"])
    assert info.trade == 42.5
    assert info.retail is None
    assert info.unit == "yard"


def test_bare_price_becomes_trade():
    info = split_prices(["$99.00"])
    assert info.trade == 99.0
    assert info.retail is None
    assert info.text == "$99.00"


def test_keyword_classification_beats_position():
    info = split_prices(["MSRP $120.00", "Your Price: $60.00 per roll", "$55.00"])
    assert info.retail == 120.0
    assert info.trade == 60.0
    assert info.unit == "roll"


def test_unclassified_price_does_not_override_trade():
    info = split_prices(["Net $10.00", "$99.00"])
    assert info.trade == 10.0


def test_no_prices():
    info = split_prices(["Login to see pricing", ""])
    assert info.trade is None and info.retail is None
    assert info.text == ""
    assert info.unit == "yard"


@pytest.mark.parametrize(
    "text,schema,expected",
    [
        ("Discontinued - special order only", "", AvailabilityStatus.DISCONTINUED),
        ("In stock, discontinued pattern", "", AvailabilityStatus.DISCONTINUED),
        ("Special order: ships in 6 weeks", "", AvailabilityStatus.BACKORDER),
        ("On backorder", "https://schema.org/InStock", AvailabilityStatus.BACKORDER),
        ("In Stock", "", AvailabilityStatus.IN_STOCK),
        ("Not in stock", "", AvailabilityStatus.OUT_OF_STOCK),
        ("Not currently in stock", "", AvailabilityStatus.OUT_OF_STOCK),
        ("Out of Stock", "https://schema.org/InStock", AvailabilityStatus.OUT_OF_STOCK),
        ("Sold out", "https://schema.org/InStock", AvailabilityStatus.OUT_OF_STOCK),
        ("Currently unavailable", "https://schema.org/InStock", AvailabilityStatus.OUT_OF_STOCK),
        ("Available to ship", "", AvailabilityStatus.IN_STOCK),
        ("", "https://schema.org/InStock", AvailabilityStatus.IN_STOCK),
        ("", "http://schema.org/PreOrder", AvailabilityStatus.BACKORDER),
        ("", "", AvailabilityStatus.OUT_OF_STOCK),
    ],
)
def test_classify_availability(text, schema, expected):
    assert classify_availability(text, schema) is expected


def test_quantity_and_lead_time():
    assert parse_quantity("", "In Stock - 1,200 yards available") == 1200.0
    assert parse_quantity("37", "") == 37.0
    assert parse_quantity("", "Available") is None
    assert parse_lead_time("", "Special order. Lead time: 4-6 weeks") == "4-6 weeks"
    assert parse_lead_time("  2  weeks ", "Lead time: ignored") == "2 weeks"
    assert parse_lead_time("", "In stock") is None


def test_order_images_primary_first_unique():
    primary, images = order_images(
        "https://cdn/x/main.jpg",
        [
            "https://cdn/x/alt.jpg",
            "https://cdn/x/main.jpg",
            "https://cdn/x/alt.jpg",
            "https://cdn/x/placeholder.png",
            "data:image/gif;base64,R0lGOD",
        ],
    )
    assert primary == "https://cdn/x/main.jpg"
    assert images == ["https://cdn/x/main.jpg", "https://cdn/x/alt.jpg"]


def test_order_images_placeholder_primary_falls_back():
    primary, images = order_images("/static/loading.gif", ["https://cdn/x/a.jpg", "https://cdn/x/b.jpg"])
    assert primary == "https://cdn/x/a.jpg"
    assert images == ["https://cdn/x/a.jpg", "https://cdn/x/b.jpg"]
    assert order_images(None, []) == (None, [])


def test_group_specifications():
    tech, performance, flammability = group_specifications(
        {
            "Content": "100% Linen",
            "Width": "54 in",
            "Abrasion": "30,000 double rubs",
            "Flame Retardant Finish": "NFPA 701",
            "Color": "Sand",
        }
    )
    assert tech == {"Content": "100% Linen", "Width": "54 in"}
    assert performance == {"Abrasion": "30,000 double rubs"}
    assert flammability == {"Flame Retardant Finish": "NFPA 701"}
