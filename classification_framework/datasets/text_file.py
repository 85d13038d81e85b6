"""Delimited text file with fixed column positions and no header, e.g. `text<TAB>0|1`."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator, Sequence

from classification_framework.exceptions import DataFormatError

from .base import DataSource

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "t", "yes", "y"}
_FALSE = {"0", "false", "f", "no", "n"}


def parse_bool(value: str) -> bool:
    """Parse a boolean label field. Accepts 1/0, true/false, yes/no (case-insensitive)."""
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"Not a boolean label: {value!r}")


class TextFileSource(DataSource):
    """Reads `[text, boolLabel]` rows from a delimited file.

    `columns` names the fields by position. The last column is parsed as a boolean label
    when `label_is_bool` is set; everything else stays a string.
    """

    name = "text_file"

    def __init__(
        self,
        path: str | Path,
        separator: str = "\t",
        has_header: bool = False,
        columns: Sequence[str] = ("SentimentText", "Label"),
        label_is_bool: bool = True,
        encoding: str = "utf-8",
    ) -> None:
        if len(columns) < 2:
            raise ValueError("TextFileSource needs at least a text column and a label column")
        self.path = Path(path)
        self.separator = separator
        self.has_header = has_header
        self._columns = list(columns)
        self.label_is_bool = label_is_bool
        self.encoding = encoding
        label = self._columns[-1]
        self.kinds = {c: "text" for c in self._columns[:-1]}
        self.kinds[label] = "bool" if label_is_bool else "text"

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    def _parse_line(self, line: str, line_no: int) -> dict[str, Any]:
        n = len(self._columns)
        # Text may itself contain the separator only if it is not the last field, so split from the right.
        parts = line.rsplit(self.separator, n - 1)
        if len(parts) != n:
            raise DataFormatError(
                f"{self.path}:{line_no}: expected {n} fields separated by {self.separator!r}, got {len(parts)}"
            )
        record: dict[str, Any] = dict(zip(self._columns, parts))
        label = self._columns[-1]
        if self.label_is_bool:
            try:
                record[label] = parse_bool(parts[-1])
            except ValueError as exc:
                raise DataFormatError(f"{self.path}:{line_no}: {exc}") from exc
        return record

    def __iter__(self) -> Iterator[dict[str, Any]]:
        if not self.path.is_file():
            raise FileNotFoundError(f"Data file not found: {self.path}")
        with open(self.path, "r", encoding=self.encoding) as f:
            for line_no, raw in enumerate(f, start=1):
                if line_no == 1 and self.has_header:
                    continue
                line = raw.rstrip("\r\n")
                if not line.strip():
                    continue
                yield self._parse_line(line, line_no)

    def load(self):
        dataset = super().load()
        logger.info("Loaded %d rows from %s", len(dataset), self.path)
        return dataset
