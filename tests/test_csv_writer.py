"""Tests for the CSV output writer."""

from __future__ import annotations

import csv
from pathlib import Path

from harvester.models import HEADER_ROW
from harvester.output.csv_writer import CsvWriter


def _read(path: Path) -> list[list[str]]:
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


class TestCsvWriter:
    def test_writes_header_and_rows(self, tmp_path: Path) -> None:
        path = tmp_path / "out.csv"
        rows = [HEADER_ROW, ["Studio", "http://x/1.html", "$900", "SOMA"]]

        count = CsvWriter().write(path, rows)

        assert count == 2
        assert path.read_text(encoding="utf-8").splitlines()[0] == "Name,URL,Price,Location"
        assert _read(path) == rows

    def test_quotes_commas_and_quotes(self, tmp_path: Path) -> None:
        path = tmp_path / "out.csv"
        row = ['Loft, "huge"', "http://x/2.html", "$1,500", "Noe Valley"]

        CsvWriter().write(path, [HEADER_ROW, row])

        assert '"Loft, ""huge"""' in path.read_text(encoding="utf-8")
        assert _read(path)[1] == row

    def test_non_ascii_is_utf8(self, tmp_path: Path) -> None:
        path = tmp_path / "out.csv"
        CsvWriter().write(path, [HEADER_ROW, ["Café studio", "u", "$1", "Presidio"]])
        assert "Café studio" in path.read_bytes().decode("utf-8")

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "out.csv"
        CsvWriter().write(path, [HEADER_ROW])
        assert _read(path) == [HEADER_ROW]

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "out.csv"
        path.write_text("old,data\n1,2\n3,4\n", encoding="utf-8")
        CsvWriter().write(path, [HEADER_ROW])
        assert _read(path) == [HEADER_ROW]
