"""Base class for estimators: the trainable final stage of a chain. Unified API over a sklearn-style backend."""

from __future__ import annotations

import logging
import time
from abc import abstractmethod
from typing import Any

import numpy as np

from classification_framework.datasets import Dataset
from classification_framework.exceptions import InsufficientDataError
from classification_framework.transforms.base import TransformBase

logger = logging.getLogger(__name__)


class EstimatorBase(TransformBase):
    """Abstract base for estimators. fit(dataset) trains on features + labels; transform() adds predictions.

    The learning algorithm itself is a backend object with the scikit-learn interface
    (fit(X, y), predict_proba(X), classes_). Pass `estimator=` to inject one; otherwise
    `_make_backend()` builds the default.
    Labels are mapped to integer indices 0..K-1 in vocabulary order before training.
    """

    name: str = "base_estimator"
    requires_fit = True
    task: str = "base"

    def __init__(
        self,
        label_column: str = "Label",
        feature_column: str = "Features",
        predicted_column: str = "PredictedLabel",
        score_column: str = "Score",
        estimator: Any | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(output_column=predicted_column, input_column=feature_column, **kwargs)
        self.label_column = label_column
        self.feature_column = feature_column
        self.predicted_column = predicted_column
        self.score_column = score_column
        self._backend = estimator
        self._model: Any | None = None
        self.classes_: tuple[Any, ...] | None = None
        self.label_kind_: str | None = None

    @property
    def input_columns(self) -> list[str]:
        return [self.feature_column, self.label_column]

    @property
    def apply_input_columns(self) -> list[str]:
        return [self.feature_column]

    @abstractmethod
    def _make_backend(self) -> Any:
        """Default learning algorithm (scikit-learn estimator)."""

    def describe(self) -> str:
        return f"{self.name}({self.feature_column}, {self.label_column} -> {self.predicted_column})"

    @staticmethod
    def features_matrix(dataset: Dataset, column: str) -> np.ndarray:
        X = np.asarray(dataset[column], dtype=np.float64)
        if X.ndim == 1:
            return X.reshape(-1, 1)
        if X.ndim > 2:
            return X.reshape(X.shape[0], -1)
        return X

    def _vocabulary(self, dataset: Dataset) -> tuple[Any, ...]:
        kind = dataset.schema[self.label_column]
        if kind == "key":
            vocab = dataset.key_values(self.label_column)
            if vocab is not None:
                return tuple(vocab)
            keys = np.asarray(dataset[self.label_column], dtype=np.int64)
            return tuple(range(int(keys.max()) + 1)) if len(keys) else ()
        if kind == "bool":
            return (False, True)
        values = dataset[self.label_column]
        return tuple(sorted({v.item() if isinstance(v, np.generic) else v for v in values}))

    def encode_labels(self, dataset: Dataset, column: str | None = None) -> np.ndarray:
        """Label (or prediction) column -> integer indices into the fitted vocabulary, -1 if outside it."""
        column = column or self.label_column
        values = dataset[column]
        kind = dataset.schema[column]
        if kind == "key" and self.label_kind_ == "key":
            keys = np.asarray(values, dtype=np.int64)
            return np.where((keys >= 0) & (keys < len(self.classes_)), keys, -1)
        index = {v: i for i, v in enumerate(self.classes_)}
        return np.fromiter(
            (index.get(v.item() if isinstance(v, np.generic) else v, -1) for v in values),
            dtype=np.int64,
            count=len(values),
        )

    def _check_classes(self, y: np.ndarray) -> None:
        present = np.unique(y)
        if len(present) < 2:
            raise InsufficientDataError(
                f"{self.describe()}: training data needs at least two distinct labels, "
                f"found {[self.classes_[i] for i in present]}"
            )

    def fit(self, dataset: Dataset) -> "EstimatorBase":
        self.check_columns(dataset, self.input_columns)
        if len(dataset) == 0:
            raise InsufficientDataError(f"{self.describe()}: cannot fit on an empty training dataset")
        self.label_kind_ = dataset.schema[self.label_column]
        self.classes_ = self._vocabulary(dataset)
        X = self.features_matrix(dataset, self.feature_column)
        y = self.encode_labels(dataset)
        known = y >= 0
        if not np.all(known):
            logger.warning("%s: dropping %d rows with unknown labels", self.describe(), int(np.sum(~known)))
            X, y = X[known], y[known]
        self._check_classes(y)
        model = self._backend if self._backend is not None else self._make_backend()
        start = time.perf_counter()
        model.fit(X, y)
        logger.info(
            "%s: trained on %d rows x %d features in %.1f ms",
            self.describe(), X.shape[0], X.shape[1], (time.perf_counter() - start) * 1e3,
        )
        self._model = model
        self._fitted = True
        return self

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """Class probabilities (n_samples, n_classes) aligned to `classes_` order."""
        self.check_fitted()
        proba = np.asarray(self._model.predict_proba(X), dtype=np.float64)
        aligned = np.zeros((proba.shape[0], len(self.classes_)), dtype=np.float64)
        model_classes = np.asarray(getattr(self._model, "classes_", np.arange(proba.shape[1])), dtype=np.int64)
        aligned[:, model_classes] = proba
        return aligned

    def _predicted_column(self, keys: np.ndarray) -> tuple[dict[str, Any], dict[str, str], dict[str, Any]]:
        """Predicted indices -> (columns, kinds, key_values) in the same representation as the label."""
        if self.label_kind_ == "bool":
            return (
                {self.predicted_column: np.asarray(self.classes_, dtype=bool)[keys]},
                {self.predicted_column: "bool"},
                {},
            )
        if self.label_kind_ == "key":
            return (
                {self.predicted_column: keys.astype(np.int64)},
                {self.predicted_column: "key"},
                {self.predicted_column: self.classes_},
            )
        values = np.empty(len(keys), dtype=object)
        for i, k in enumerate(keys):
            values[i] = self.classes_[int(k)]
        return {self.predicted_column: values}, {}, {}
