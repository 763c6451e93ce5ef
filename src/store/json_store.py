from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class PersistenceError(RuntimeError):
    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path


class JsonDocumentStore:
    """Named JSON documents (``accounts``, ``transactions``) under one directory.

    Each document is a JSON list, read whole and overwritten whole.
    """

    def __init__(self, *, root_dir: Path) -> None:
        self.root_dir = root_dir

    def read(self, name: str) -> list[dict[str, Any]] | None:
        path = self._file_path(name)
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Cannot read {path}: {exc}", path=path) from exc

        if not isinstance(payload, list):
            raise PersistenceError(f"{path} must contain a JSON list", path=path)
        return payload

    def write(self, name: str, rows: list[dict[str, Any]]) -> None:
        path = self._file_path(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(rows), encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Cannot write {path}: {exc}", path=path) from exc

    def _file_path(self, name: str) -> Path:
        return self.root_dir / f"{name}.json"


__all__ = ["JsonDocumentStore", "PersistenceError"]
