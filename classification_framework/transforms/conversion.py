"""Label <-> key conversion. The vocabulary learned at fit time is frozen and reused for every apply."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from classification_framework.datasets import Dataset
from classification_framework.exceptions import InsufficientDataError, PipelineError

from .base import TransformBase

logger = logging.getLogger(__name__)

UNKNOWN_KEY = -1


class MapValueToKey(TransformBase):
    """Learn a sorted vocabulary of label values and replace each value by its index.

    Values not seen during fit map to UNKNOWN_KEY (-1). When the input column is absent at apply
    time (unlabeled prediction batches) the step passes the dataset through unchanged.
    """

    name = "map_value_to_key"
    requires_fit = True

    def __init__(self, output_column: str = "Label", input_column: str | None = None, **kwargs: Any) -> None:
        super().__init__(output_column, input_column, **kwargs)
        self.classes_: tuple[Any, ...] | None = None
        self._index: dict[Any, int] = {}

    @property
    def apply_input_columns(self) -> list[str]:
        return []

    @property
    def output_kinds(self) -> dict[str, str]:
        return {self.output_column: "key"}

    def fit(self, dataset: Dataset) -> "MapValueToKey":
        from sklearn.preprocessing import LabelEncoder

        self.check_columns(dataset, self.input_columns)
        values = dataset[self.input_column]
        if len(values) == 0:
            raise InsufficientDataError(f"{self.describe()}: cannot learn a vocabulary from zero rows")
        encoder = LabelEncoder()
        encoder.fit(list(values))
        self.classes_ = tuple(v.item() if isinstance(v, np.generic) else v for v in encoder.classes_)
        self._index = {v: i for i, v in enumerate(self.classes_)}
        self._fitted = True
        logger.info("%s: vocabulary of %d values %s", self.describe(), len(self.classes_), list(self.classes_))
        return self

    def transform(self, dataset: Dataset) -> Dataset:
        self.check_fitted()
        if self.input_column not in dataset:
            return dataset
        raw = dataset[self.input_column]
        keys = np.fromiter(
            (self._index.get(v.item() if isinstance(v, np.generic) else v, UNKNOWN_KEY) for v in raw),
            dtype=np.int64,
            count=len(raw),
        )
        n_unknown = int(np.sum(keys == UNKNOWN_KEY))
        if n_unknown:
            logger.warning("%s: %d values not in fitted vocabulary", self.describe(), n_unknown)
        return dataset.with_columns(
            {self.output_column: keys},
            kinds={self.output_column: "key"},
            key_values={self.output_column: self.classes_},
        )


class MapKeyToValue(TransformBase):
    """Map integer keys back to the original values using the vocabulary attached to the key column."""

    name = "map_key_to_value"

    def __init__(self, output_column: str, input_column: str | None = None, **kwargs: Any) -> None:
        super().__init__(output_column, input_column, **kwargs)

    @property
    def output_kinds(self) -> dict[str, str]:
        return {self.output_column: "object"}

    def transform(self, dataset: Dataset) -> Dataset:
        self.check_columns(dataset, self.apply_input_columns)
        vocab = dataset.key_values(self.input_column)
        if vocab is None:
            raise PipelineError(
                f"{self.describe()}: column '{self.input_column}' carries no key vocabulary"
            )
        keys = dataset[self.input_column]
        values = np.empty(len(keys), dtype=object)
        for i, k in enumerate(keys):
            k = int(k)
            values[i] = vocab[k] if 0 <= k < len(vocab) else None
        return dataset.with_columns({self.output_column: values}, kinds={self.output_column: "object"})
