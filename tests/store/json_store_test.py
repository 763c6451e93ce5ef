from __future__ import annotations

import csv
from pathlib import Path

import pytest

from store.csv_report import CsvReportWriter
from store.json_store import JsonDocumentStore, PersistenceError


def test_missing_document_reads_as_none(tmp_path: Path) -> None:
    store = JsonDocumentStore(root_dir=tmp_path / "data")

    assert store.read("accounts") is None


def test_write_creates_directory_and_round_trips(tmp_path: Path) -> None:
    store = JsonDocumentStore(root_dir=tmp_path / "data")
    rows = [{"id": "a1", "code": "BTC", "name": "Bitcoin"}]

    store.write("accounts", rows)

    assert (tmp_path / "data" / "accounts.json").exists()
    assert store.read("accounts") == rows


def test_corrupt_document_raises_persistence_error(tmp_path: Path) -> None:
    (tmp_path / "accounts.json").write_text("{not json", encoding="utf-8")
    store = JsonDocumentStore(root_dir=tmp_path)

    with pytest.raises(PersistenceError) as excinfo:
        store.read("accounts")

    assert excinfo.value.path == tmp_path / "accounts.json"


def test_non_list_document_raises_persistence_error(tmp_path: Path) -> None:
    (tmp_path / "accounts.json").write_text('{"id": "a1"}', encoding="utf-8")
    store = JsonDocumentStore(root_dir=tmp_path)

    with pytest.raises(PersistenceError):
        store.read("accounts")


def test_write_failure_raises_persistence_error(tmp_path: Path) -> None:
    blocker = tmp_path / "data"
    blocker.write_text("a file where the directory should be", encoding="utf-8")
    store = JsonDocumentStore(root_dir=blocker)

    with pytest.raises(PersistenceError):
        store.write("accounts", [])


def test_csv_report_quotes_embedded_delimiters(tmp_path: Path) -> None:
    writer = CsvReportWriter(root_dir=tmp_path / "output")
    rows = [
        {"name": "Wrapped, Bitcoin", "note": 'say "hi"'},
        {"name": "Ether", "note": "line\nbreak"},
    ]

    path = writer.write("summary", rows)

    assert path == tmp_path / "output" / "summary.csv"
    with path.open(encoding="utf-8", newline="") as fp:
        parsed = list(csv.DictReader(fp))
    assert parsed == rows


def test_csv_report_skips_empty_rows(tmp_path: Path) -> None:
    writer = CsvReportWriter(root_dir=tmp_path)

    assert writer.write("summary", []) is None
    assert not (tmp_path / "summary.csv").exists()
