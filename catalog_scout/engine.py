# File: catalog_scout/engine.py
"""catalog_scout.engine: crawl orchestration.

The crawl is a small state machine. ``LOGIN`` runs once; afterwards every
frontier entry is either a ``LISTING(brand, page)`` or a ``PRODUCT(url,
brand)`` unit of work, handled by a bounded pool of worker tasks.

Workers only render, extract, normalize and persist; they report an outcome
message back. One coordinator loop consumes those messages and is the single
writer of the :class:`Frontier`, the :class:`CrawlStats` and the result
stream. The crawl ends when no entry is queued or in flight.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, Union

from aiohttp import ClientSession, ClientTimeout, CookieJar

from catalog_scout.aggregator import CrawlStats
from catalog_scout.config import CrawlerConfig
from catalog_scout.crawler.frontier import Frontier
from catalog_scout.crawler.models import FrontierEntry, ListingPage, PageKind
from catalog_scout.crawler.renderer import Renderer, build_renderer
from catalog_scout.crawler.session import SessionHandle, SessionManager
from catalog_scout.errors import AuthFailure, NavigationFailure
from catalog_scout.logger import logger
from catalog_scout.normalizer import normalize
from catalog_scout.parser.listing_parser import LISTING_READY_SELECTOR, extract_listing
from catalog_scout.parser.product_parser import extract_product
from catalog_scout.records import ProductRecord, Rejected
from catalog_scout.report.json_report import ResultStream
from catalog_scout.storage.supabase import SupabaseSink

__all__ = ["Orchestrator", "start_crawl"]


# --------------------------------------------------------------------------- #
# Outcome messages (worker → coordinator)                                     #
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class ListingDone:
    listing: ListingPage


@dataclass(slots=True)
class ProductDone:
    record: ProductRecord
    saved: bool
    attempted: bool = True


@dataclass(slots=True)
class ProductRejected:
    rejected: Rejected


@dataclass(slots=True)
class Failed:
    kind: str
    error: str


Outcome = Union[ListingDone, ProductDone, ProductRejected, Failed]


class Orchestrator:
    """Drives one crawl from login to frontier exhaustion."""

    def __init__(self, config: CrawlerConfig) -> None:
        self.config = config
        self.targets = config.targets()
        self.frontier = Frontier(config.max_products_per_brand)
        self.stats = CrawlStats.for_brands(config.brands)
        self.session: Optional[SessionHandle] = None
        self._handlers: Dict[PageKind, Callable[..., Awaitable[Outcome]]] = {
            PageKind.LISTING: self._handle_listing,
            PageKind.PRODUCT: self._handle_product,
        }

    async def run(self) -> CrawlStats:
        """Log in, crawl every configured brand and return the final counters."""
        logger.info(
            "Crawl start: brands=%s max/brand=%d concurrency=%d persistence=%s",
            ",".join(self.config.brands),
            self.config.max_products_per_brand,
            self.config.max_concurrency,
            "disabled" if self.config.skip_persistence else "enabled",
        )
        http = ClientSession(
            cookie_jar=CookieJar(unsafe=True),
            headers={"User-Agent": self.config.user_agent},
            timeout=ClientTimeout(total=self.config.navigation_timeout),
        )
        async with http:
            renderer = build_renderer(self.config, http)
            async with renderer, SupabaseSink(self.config) as sink:
                await self.login(http, renderer)
                with ResultStream(self.config.output) as stream:
                    await self._drain(renderer, sink, stream)

        for line in self.stats.summary_lines():
            logger.info(line)
        return self.stats

    # ------------------------------------------------------------------ #
    # LOGIN                                                              #
    # ------------------------------------------------------------------ #

    async def login(self, http: ClientSession, renderer: Renderer) -> SessionHandle:
        manager = SessionManager(self.config, http, renderer)
        self.session = await manager.establish(self.config.credentials)
        self.stats.session = self.session.status.value
        if not self.session.ready and self.config.require_auth:
            raise AuthFailure("no login strategy established an authenticated session")
        return self.session

    # ------------------------------------------------------------------ #
    # Coordinator                                                        #
    # ------------------------------------------------------------------ #

    async def _drain(self, renderer: Renderer, sink: SupabaseSink, stream: ResultStream) -> None:
        work: asyncio.Queue[FrontierEntry] = asyncio.Queue()
        outcomes: asyncio.Queue[Tuple[FrontierEntry, Outcome]] = asyncio.Queue()
        pending = 0

        def submit(entries: Iterable[FrontierEntry]) -> None:
            nonlocal pending
            for entry in entries:
                work.put_nowait(entry)
                pending += 1

        submit(self.frontier.seed_listing(t) for t in self.targets)
        workers = [
            asyncio.create_task(self._worker(work, outcomes, renderer, sink))
            for _ in range(self.config.max_concurrency)
        ]
        try:
            while pending:
                entry, outcome = await outcomes.get()
                pending -= 1
                submit(self._apply(entry, outcome, stream))
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

    def _apply(self, entry: FrontierEntry, outcome: Outcome, stream: ResultStream) -> List[FrontierEntry]:
        """Fold one outcome into frontier and stats; return newly admitted work."""
        if isinstance(outcome, ListingDone):
            listing = outcome.listing
            page = entry.page or 1
            products = self.frontier.enqueue_products(listing.product_urls, entry.brand)
            logger.info(
                "Listing %s page %d: %d product link(s), %d admitted",
                entry.brand, page, len(listing.product_urls), len(products),
            )
            follow = self.frontier.maybe_enqueue_next_listing(entry.brand, page, listing.next_url)
            return products + ([follow] if follow else [])

        if isinstance(outcome, ProductDone):
            record = outcome.record
            stream.emit(record, brand=entry.brand, saved=outcome.saved)
            self.stats.record_product(entry.brand, outcome.saved, attempted=outcome.attempted)
            price = f"{record.trade_price:.2f}" if record.trade_price is not None else "N/A"
            unsaved = outcome.attempted and not outcome.saved
            logger.info("%s: $%s (%s)%s", record.sku, price, record.brand, " [not saved]" if unsaved else "")
        elif isinstance(outcome, ProductRejected):
            self.stats.record_error("rejected")
            logger.warning("Skipping %s: %s", outcome.rejected.url, outcome.rejected.reason)
        else:
            self.stats.record_error(outcome.kind)
            logger.error("Failed: %s - %s", entry.url, outcome.error)
        return []

    # ------------------------------------------------------------------ #
    # Workers                                                            #
    # ------------------------------------------------------------------ #

    async def _worker(
        self,
        work: asyncio.Queue[FrontierEntry],
        outcomes: asyncio.Queue[Tuple[FrontierEntry, Outcome]],
        renderer: Renderer,
        sink: SupabaseSink,
    ) -> None:
        while True:
            entry = await work.get()
            try:
                outcome = await self._handlers[entry.kind](entry, renderer, sink)
            except NavigationFailure as exc:
                outcome = Failed("navigation", exc.reason)
            except Exception as exc:
                logger.exception("Unexpected error on %s", entry.url)
                outcome = Failed("unexpected", repr(exc))
            outcomes.put_nowait((entry, outcome))
            work.task_done()

    async def _handle_listing(self, entry: FrontierEntry, renderer: Renderer, sink: SupabaseSink) -> Outcome:
        logger.info("Listing page: %s (page %d)", entry.brand, entry.page or 1)
        page = await renderer.render(
            entry.url,
            wait_for=LISTING_READY_SELECTOR,
            wait_timeout=self.config.listing_wait_timeout,
        )
        return ListingDone(extract_listing(page, self.config.site.origin))

    async def _handle_product(self, entry: FrontierEntry, renderer: Renderer, sink: SupabaseSink) -> Outcome:
        logger.debug("Product: %s", entry.url)
        page = await renderer.render(entry.url, settle=self.config.product_settle)
        result = normalize(extract_product(page), entry.brand, entry.url)
        if isinstance(result, Rejected):
            return ProductRejected(result)
        return ProductDone(result, await sink.upsert(result), attempted=not sink.disabled)


async def start_crawl(cfg: CrawlerConfig) -> CrawlStats:
    """
    Run one crawl for *cfg* and return its counters.

    Parameters
    ----------
    cfg : CrawlerConfig
        Crawl configuration.
    """
    return await Orchestrator(cfg).run()
