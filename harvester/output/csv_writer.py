"""Craigslist Harvester — CSV Output.

Writes the result table (header row first) to a UTF-8 CSV file in a
single pass. The file is only opened once every row is ready.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, Sequence, Union

from harvester.utils.logger import get_logger

logger = get_logger(__name__)


class CsvWriter:
    """Persists rows to a comma-separated file with standard quoting."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def write(self, path: Union[str, Path], rows: Iterable[Sequence[str]]) -> int:
        """Write ``rows`` to ``path``, replacing any existing file.

        Args:
            path: Destination file. Parent directories are created.
            rows: Header row followed by data rows.

        Returns:
            Number of rows written, header included.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        count = 0
        with open(path, "w", newline="", encoding=self.encoding) as f:
            writer = csv.writer(f)
            for row in rows:
                writer.writerow(row)
                count += 1

        logger.info("Wrote %d rows to %s", count, path)
        return count
