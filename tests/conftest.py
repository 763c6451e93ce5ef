from pathlib import Path

import pytest

from store.csv_report import CsvReportWriter
from store.json_store import JsonDocumentStore


@pytest.fixture(scope="function")
def store(tmp_path: Path) -> JsonDocumentStore:
    return JsonDocumentStore(root_dir=tmp_path / "data")


@pytest.fixture(scope="function")
def reports(tmp_path: Path) -> CsvReportWriter:
    return CsvReportWriter(root_dir=tmp_path / "output")
