# File: catalog_scout/storage/supabase.py
"""catalog_scout.storage.supabase: idempotent upsert of product records over PostgREST."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from catalog_scout.config import CrawlerConfig
from catalog_scout.errors import PersistenceFailure
from catalog_scout.logger import logger
from catalog_scout.records import ProductRecord

__all__ = ["SupabaseSink", "build_payload", "CONFLICT_COLUMN"]

#: natural key of the ``item_latest`` table
CONFLICT_COLUMN = "vendor_item_id"


def build_payload(record: ProductRecord) -> Dict[str, Any]:
    """First-class columns plus one nested ``data`` document."""
    return {
        CONFLICT_COLUMN: record.sku,
        "item_url": record.url,
        "price_value": record.trade_price,
        "price_text": record.price_text,
        "availability": record.availability.to_dict(),
        "discontinued": record.discontinued,
        "data": {
            "brand": record.brand,
            "name": record.name,
            "collection": record.collection,
            "pattern": record.pattern,
            "colorway": record.colorway,
            "description": record.description,
            "pricing": {
                "trade_price": record.trade_price,
                "retail_price": record.retail_price,
                "unit": record.price_unit,
            },
            "media": {
                "primary_image_url": record.image_url,
                "images": record.images,
            },
            "specifications": record.specifications,
            "tech_details": record.tech_details,
            "performance_data": record.performance_data,
            "flammability": record.flammability,
            "certifications": record.certifications,
            "coordinates": record.coordinates,
            "meta": {
                "description": record.meta_description,
                "keywords": record.meta_keywords,
                "canonical_url": record.canonical_url,
                "structured_data": record.structured_data,
            },
            "extra": record.extra,
        },
    }


class SupabaseSink:
    """Upserts one record per call; a failed upsert is logged, never raised."""

    def __init__(self, config: CrawlerConfig, session: Optional[ClientSession] = None) -> None:
        self.storage = config.storage
        self.disabled = config.skip_persistence or not self.storage.configured
        self._session = session
        self._owns_session = session is None
        self._timeout = ClientTimeout(total=30)

    async def __aenter__(self) -> "SupabaseSink":
        if self._session is None and not self.disabled:
            self._session = ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    @property
    def endpoint(self) -> str:
        return f"{str(self.storage.url).rstrip('/')}/rest/v1/{self.storage.table}"

    def _headers(self) -> Dict[str, str]:
        key = self.storage.key.get_secret_value() if self.storage.key else ""
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
            "Prefer": "resolution=merge-duplicates",
        }

    async def _post(self, record: ProductRecord) -> None:
        if self._session is None:
            raise RuntimeError("Session not initialized")
        try:
            async with self._session.post(
                self.endpoint,
                params={"on_conflict": CONFLICT_COLUMN},
                json=build_payload(record),
                headers=self._headers(),
            ) as resp:
                if resp.status >= 300:
                    body = await resp.text()
                    raise PersistenceFailure(record.sku, f"HTTP {resp.status}: {body[:200]}")
        except (ClientError, asyncio.TimeoutError) as exc:
            raise PersistenceFailure(record.sku, str(exc) or type(exc).__name__) from exc

    async def upsert(self, record: ProductRecord) -> bool:
        """True when the store accepted the record."""
        if self.disabled:
            return False
        try:
            await self._post(record)
        except PersistenceFailure as exc:
            logger.error("Store error for %s: %s", exc.sku, exc.reason)
            return False
        return True
