# catalog_scout/report/json_report.py

"""
JSON output for CatalogScout.

* :class:`ResultStream` – local result store: one JSON line per normalized
  record, written as soon as the record exists (even if remote persistence
  later fails).
* :func:`render_json` – the final summary as a JSON file.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import IO, Optional, Union

from catalog_scout.aggregator import CrawlStats
from catalog_scout.records import ProductRecord


class ResultStream:
    """Append-only JSON-lines writer; use as a context manager."""

    def __init__(self, path: Union[Path, str, None]) -> None:
        self.path = Path(path) if path is not None else None
        self._fh: Optional[IO[str]] = None
        self.count = 0

    def __enter__(self) -> "ResultStream":
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = self.path.open("a", encoding="utf-8")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def emit(self, record: ProductRecord, *, brand: str, saved: bool) -> None:
        """Write one record event."""
        self.count += 1
        if self._fh is None:
            return
        event = {"brand_key": brand, "saved": saved, "record": record.to_dict()}
        self._fh.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")
        self._fh.flush()


def render_json(stats: CrawlStats, output_path: Path | str) -> Path:
    """
    Save the crawl summary as JSON at *output_path*.

    :param stats: counters of the finished crawl
    :param output_path: path to the JSON file
    :return: Path of the saved file
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as f:
        f.write(stats.json(pretty=True))
    return output
