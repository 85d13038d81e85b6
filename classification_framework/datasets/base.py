"""Immutable column-oriented dataset and the base interface for data sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Sequence

import numpy as np

# Column kinds used in schemas. "key" marks integer label keys produced by MapValueToKey.
COLUMN_KINDS = ("text", "bool", "number", "key", "vector", "image", "object")


def _freeze(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


def _as_column(values: Sequence[Any]) -> np.ndarray:
    """Convert a list of python values to a numpy column (object dtype unless homogeneous)."""
    values = list(values)
    if values and all(isinstance(v, (bool, np.bool_)) for v in values):
        return np.asarray(values, dtype=bool)
    if values and all(isinstance(v, np.ndarray) for v in values):
        shapes = {v.shape for v in values}
        if len(shapes) == 1 and values[0].dtype != object:
            return np.stack(values)
    if values and all(
        isinstance(v, (int, float, np.integer, np.floating)) and not isinstance(v, (bool, np.bool_))
        for v in values
    ):
        return np.asarray(values)
    col = np.empty(len(values), dtype=object)
    for i, v in enumerate(values):
        col[i] = v
    return col


def infer_kind(column: np.ndarray) -> str:
    """Best-effort column kind for columns created without an explicit kind."""
    if column.dtype == bool:
        return "bool"
    if column.dtype.kind in "iuf":
        return "number" if column.ndim == 1 else "vector"
    if len(column) and all(isinstance(v, str) for v in column):
        return "text"
    return "object"


class Dataset:
    """Ordered, finite, immutable table of records sharing a schema.

    Columns are numpy arrays of equal length with the write flag cleared.
    Anything that looks like a mutation (with_columns, take, select) returns a new Dataset.
    """

    def __init__(
        self,
        columns: Mapping[str, Any],
        kinds: Mapping[str, str] | None = None,
        key_values: Mapping[str, Sequence[Any]] | None = None,
    ) -> None:
        kinds = dict(kinds or {})
        data: dict[str, np.ndarray] = {}
        n_rows: int | None = None
        for name, values in columns.items():
            col = values if isinstance(values, np.ndarray) else _as_column(values)
            if col.flags.writeable:
                col = _freeze(col.copy())
            if n_rows is None:
                n_rows = len(col)
            elif len(col) != n_rows:
                raise ValueError(
                    f"Column '{name}' has {len(col)} rows, expected {n_rows}"
                )
            data[name] = col
        schema = {}
        for name, col in data.items():
            kind = kinds.get(name) or infer_kind(col)
            if kind not in COLUMN_KINDS:
                raise ValueError(f"Unknown column kind '{kind}' for column '{name}'")
            schema[name] = kind
        vocab = {}
        for name, values in (key_values or {}).items():
            if name in data:
                vocab[name] = tuple(values)
        self._columns = MappingProxyType(data)
        self._schema = MappingProxyType(schema)
        self._key_values = MappingProxyType(vocab)
        self._n_rows = n_rows or 0

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        columns: Sequence[str] | None = None,
        kinds: Mapping[str, str] | None = None,
    ) -> "Dataset":
        """Build a dataset from dict-like records. Column order follows the first record."""
        rows = [dict(r) for r in records]
        if columns is None:
            columns = list(rows[0].keys()) if rows else []
        data: dict[str, list[Any]] = {name: [] for name in columns}
        for i, row in enumerate(rows):
            for name in columns:
                if name not in row:
                    raise KeyError(f"Record {i} is missing field '{name}'")
                data[name].append(row[name])
        return cls(data, kinds=kinds)

    @property
    def schema(self) -> Mapping[str, str]:
        return self._schema

    @property
    def column_names(self) -> list[str]:
        return list(self._columns.keys())

    def __len__(self) -> int:
        return self._n_rows

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def __getitem__(self, name: str) -> np.ndarray:
        return self.column(name)

    def column(self, name: str) -> np.ndarray:
        if name not in self._columns:
            raise KeyError(f"Unknown column '{name}'. Available: {self.column_names}")
        return self._columns[name]

    def key_values(self, name: str) -> tuple[Any, ...] | None:
        """Vocabulary of a key column (key i -> key_values[i]), or None if the column has none."""
        return self._key_values.get(name)

    def with_columns(
        self,
        columns: Mapping[str, Any],
        kinds: Mapping[str, str] | None = None,
        key_values: Mapping[str, Sequence[Any]] | None = None,
    ) -> "Dataset":
        """Return a new dataset with columns added or replaced (same name overwrites)."""
        merged: dict[str, Any] = dict(self._columns)
        merged_kinds = dict(self._schema)
        merged_vocab = dict(self._key_values)
        for name in columns:
            merged_kinds.pop(name, None)
            merged_vocab.pop(name, None)
        merged.update(columns)
        merged_kinds.update(kinds or {})
        merged_vocab.update(key_values or {})
        return Dataset(merged, kinds=merged_kinds, key_values=merged_vocab)

    def select(self, names: Sequence[str]) -> "Dataset":
        return Dataset(
            {n: self.column(n) for n in names},
            kinds={n: self._schema[n] for n in names},
            key_values=self._key_values,
        )

    def take(self, indices: Sequence[int] | np.ndarray) -> "Dataset":
        """Rows at the given positions, in the given order."""
        idx = np.asarray(indices, dtype=np.int64)
        return Dataset(
            {name: col[idx] for name, col in self._columns.items()},
            kinds=self._schema,
            key_values=self._key_values,
        )

    def iter_records(self) -> Iterator[dict[str, Any]]:
        for i in range(self._n_rows):
            record = {}
            for name, col in self._columns.items():
                value = col[i]
                if isinstance(value, np.generic):
                    value = value.item()
                record[name] = value
            yield record

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return self.iter_records()

    def to_records(self) -> list[dict[str, Any]]:
        return list(self.iter_records())

    def __repr__(self) -> str:
        cols = ", ".join(f"{n}:{k}" for n, k in self._schema.items())
        return f"Dataset(n_rows={self._n_rows}, columns=[{cols}])"


class DataSource(ABC):
    """Restartable producer of records. Iterating twice re-reads the underlying input."""

    name: str = "base"

    #: Column kinds of the records this source yields.
    kinds: Mapping[str, str] = {}

    @abstractmethod
    def __iter__(self) -> Iterator[dict[str, Any]]:
        """Yield one dict per record."""

    @property
    @abstractmethod
    def columns(self) -> list[str]:
        """Field names of the yielded records."""

    def load(self) -> Dataset:
        """Read every record into an immutable Dataset. I/O errors propagate; nothing partial is returned."""
        return Dataset.from_records(list(self), columns=self.columns, kinds=self.kinds)


class InMemorySource(DataSource):
    """Wrap an in-memory sequence of records (e.g. a prediction batch)."""

    name = "in_memory"

    def __init__(
        self,
        records: Iterable[Mapping[str, Any]],
        columns: Sequence[str] | None = None,
        kinds: Mapping[str, str] | None = None,
    ) -> None:
        self._records = tuple(dict(r) for r in records)
        if columns is None:
            columns = list(self._records[0].keys()) if self._records else []
        self._columns = list(columns)
        self.kinds = dict(kinds or {})

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        for record in self._records:
            yield dict(record)

    def __len__(self) -> int:
        return len(self._records)
