from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Mapping, Sequence

from .json_store import PersistenceError


class CsvReportWriter:
    """Writes ``<name>.csv`` reports; the header comes from the first row's keys."""

    def __init__(self, *, root_dir: Path) -> None:
        self.root_dir = root_dir

    def write(self, name: str, rows: Sequence[Mapping[str, Any]]) -> Path | None:
        if not rows:
            return None

        path = self.root_dir / f"{name}.csv"
        fieldnames = list(rows[0].keys())
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8", newline="") as fp:
                writer = csv.DictWriter(fp, fieldnames=fieldnames, restval="", extrasaction="ignore")
                writer.writeheader()
                writer.writerows(rows)
        except OSError as exc:
            raise PersistenceError(f"Cannot write {path}: {exc}", path=path) from exc
        return path


__all__ = ["CsvReportWriter"]
