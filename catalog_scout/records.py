# File: catalog_scout/records.py
"""catalog_scout.records: Canonical product record and the raw field map type."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

__all__ = [
    "RawFieldMap",
    "AvailabilityStatus",
    "Availability",
    "ProductRecord",
    "Rejected",
]

#: free-form label → text or list of texts, as scraped from one product page
RawFieldMap = Dict[str, Union[str, List[str]]]


class AvailabilityStatus(str, Enum):
    IN_STOCK = "in_stock"
    OUT_OF_STOCK = "out_of_stock"
    BACKORDER = "backorder"
    DISCONTINUED = "discontinued"


@dataclass(slots=True)
class Availability:
    status: AvailabilityStatus = AvailabilityStatus.OUT_OF_STOCK
    quantity: Optional[float] = None
    lead_time: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value, "quantity": self.quantity, "lead_time": self.lead_time}


@dataclass(slots=True)
class ProductRecord:
    """Normalized representation of one catalog item, keyed by ``sku``."""

    sku: str
    url: str
    brand: str
    name: str = ""
    collection: str = ""
    pattern: str = ""
    colorway: str = ""
    description: str = ""

    trade_price: Optional[float] = None
    retail_price: Optional[float] = None
    price_unit: str = "yard"
    price_text: str = ""

    primary_image: Optional[str] = None
    image_url: Optional[str] = None
    images: List[str] = field(default_factory=list)

    specifications: Dict[str, str] = field(default_factory=dict)
    tech_details: Dict[str, str] = field(default_factory=dict)
    performance_data: Dict[str, str] = field(default_factory=dict)
    flammability: Dict[str, str] = field(default_factory=dict)
    certifications: List[str] = field(default_factory=list)
    coordinates: List[str] = field(default_factory=list)

    availability: Availability = field(default_factory=Availability)

    meta_description: str = ""
    meta_keywords: str = ""
    canonical_url: str = ""
    structured_data: List[Any] = field(default_factory=list)

    extra: Dict[str, Union[str, List[str]]] = field(default_factory=dict)

    @property
    def discontinued(self) -> bool:
        return self.availability.status is AvailabilityStatus.DISCONTINUED

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["availability"] = self.availability.to_dict()
        data["discontinued"] = self.discontinued
        return data


@dataclass(frozen=True, slots=True)
class Rejected:
    """Normalization outcome for a page without a usable identity."""

    url: str
    reason: str
