# File: catalog_scout/aggregator.py
"""catalog_scout.aggregator: crawl counters and the final summary report."""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from catalog_scout.brands import display_name


@dataclass(slots=True)
class BrandStats:
    """Per-brand counters."""

    scraped: int = 0
    saved: int = 0


@dataclass(slots=True)
class CrawlStats:
    """Process-wide crawl counters.

    Mutated only by the orchestrator's coordinator task; read once the
    frontier is exhausted to build the summary.
    """

    scraped: int = 0
    saved: int = 0
    errors: int = 0
    by_brand: Dict[str, BrandStats] = field(default_factory=dict)
    failures: Counter = field(default_factory=Counter)
    session: Optional[str] = None

    @classmethod
    def for_brands(cls, brands: Iterable[str]) -> CrawlStats:
        return cls(by_brand={b: BrandStats() for b in brands})

    def record_product(self, brand: str, saved: bool, attempted: bool = True) -> None:
        """Count one normalized record; unsaved ones are persistence failures when a save was attempted."""
        self.scraped += 1
        entry = self.by_brand.setdefault(brand, BrandStats())
        entry.scraped += 1
        if saved:
            self.saved += 1
            entry.saved += 1
        elif attempted:
            self.failures["persistence"] += 1

    def record_error(self, kind: str) -> None:
        """Count one failed unit of work (rejection, navigation, unexpected)."""
        self.errors += 1
        self.failures[kind] += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scraped": self.scraped,
            "saved": self.saved,
            "errors": self.errors,
            "session": self.session,
            "failures": dict(self.failures),
            "by_brand": {
                key: {"name": display_name(key), "scraped": s.scraped, "saved": s.saved}
                for key, s in self.by_brand.items()
            },
        }

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)

    def summary_lines(self) -> List[str]:
        """Human-readable summary printed at the end of a crawl."""
        rule = "═" * 39
        lines = [
            rule,
            "  CRAWL COMPLETE",
            rule,
            f"Session:         {self.session or 'n/a'}",
            f"Total scraped:   {self.scraped}",
            f"Saved to store:  {self.saved}",
            f"Errors:          {self.errors}",
        ]
        if self.failures:
            detail = ", ".join(f"{k}={v}" for k, v in sorted(self.failures.items()))
            lines.append(f"Failures:        {detail}")
        lines.append("")
        lines.append("By brand:")
        for key, s in self.by_brand.items():
            lines.append(f"   {display_name(key)}: {s.scraped} scraped, {s.saved} saved")
        return lines

    def summary(self) -> str:
        return "\n".join(self.summary_lines())
