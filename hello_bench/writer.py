from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

import pandas as pd

LOGGER = logging.getLogger("hello_bench.writer")


class CsvSink:
    """Append-only CSV table, written one row at a time.

    Opening a sink truncates any previous file at the same path; the header is
    taken from the first appended row.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.unlink(missing_ok=True)
        self._rows_written = 0
        self._columns: list[str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def rows_written(self) -> int:
        return self._rows_written

    def append(self, row: Mapping[str, Any]) -> None:
        frame = pd.DataFrame([dict(row)], columns=self._columns)
        if self._columns is None:
            self._columns = list(frame.columns)
        frame.to_csv(
            self._path,
            mode="a",
            header=self._rows_written == 0,
            index=False,
        )
        self._rows_written += 1

    def extend(self, rows: Iterable[Mapping[str, Any]]) -> None:
        for row in rows:
            self.append(row)


def open_sink(path: Path) -> CsvSink:
    LOGGER.info("Writing results to %s", path)
    return CsvSink(path)
