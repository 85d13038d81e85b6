"""L2-regularized logistic regression estimators (binary and multinomial maximum entropy)."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
from scipy.special import logit

from classification_framework.datasets import Dataset
from classification_framework.exceptions import InsufficientDataError

from .base import EstimatorBase

logger = logging.getLogger(__name__)

_EPS = 1e-15


class BinaryLogisticRegression(EstimatorBase):
    """Two-class logistic regression.

    Adds PredictedLabel (same representation as the label), Score (raw margin, positive means
    the second vocabulary value, e.g. True) and Probability (calibrated P(positive)).
    """

    name = "logistic_regression"
    task = "binary"

    def __init__(
        self,
        label_column: str = "Label",
        feature_column: str = "Features",
        predicted_column: str = "PredictedLabel",
        score_column: str = "Score",
        probability_column: str = "Probability",
        C: float = 1.0,
        max_iter: int = 1000,
        solver: str = "lbfgs",
        threshold: float = 0.5,
        random_state: int | None = 42,
        estimator: Any | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            label_column=label_column,
            feature_column=feature_column,
            predicted_column=predicted_column,
            score_column=score_column,
            estimator=estimator,
            **kwargs,
        )
        if not 0.0 < threshold < 1.0:
            raise ValueError(f"threshold must be in (0, 1), got {threshold}")
        self.probability_column = probability_column
        self.C = C
        self.max_iter = max_iter
        self.solver = solver
        self.threshold = threshold
        self.random_state = random_state

    @property
    def output_kinds(self) -> dict[str, str]:
        return {
            self.predicted_column: "object",
            self.score_column: "number",
            self.probability_column: "number",
        }

    def _make_backend(self) -> Any:
        from sklearn.linear_model import LogisticRegression as LR

        return LR(C=self.C, max_iter=self.max_iter, solver=self.solver, random_state=self.random_state)

    def fit(self, dataset: Dataset) -> "BinaryLogisticRegression":
        if self.label_column in dataset and len(dataset):
            vocab = self._vocabulary(dataset)
            if len(vocab) > 2:
                raise InsufficientDataError(
                    f"{self.describe()}: binary estimator got {len(vocab)} label values {list(vocab)}; "
                    "use the multiclass estimator"
                )
        super().fit(dataset)
        return self

    def _scores(self, X: np.ndarray, p_pos: np.ndarray) -> np.ndarray:
        if hasattr(self._model, "decision_function"):
            return np.asarray(self._model.decision_function(X), dtype=np.float64).reshape(-1)
        return logit(np.clip(p_pos, _EPS, 1.0 - _EPS))

    def transform(self, dataset: Dataset) -> Dataset:
        self.check_fitted()
        self.check_columns(dataset, self.apply_input_columns)
        X = self.features_matrix(dataset, self.feature_column)
        if len(X) == 0:
            p_pos = np.empty(0, dtype=np.float64)
            scores = np.empty(0, dtype=np.float64)
        else:
            p_pos = self.predict_proba(X)[:, 1]
            scores = self._scores(X, p_pos)
        keys = (p_pos >= self.threshold).astype(np.int64)
        columns, kinds, key_values = self._predicted_column(keys)
        columns[self.score_column] = scores
        columns[self.probability_column] = p_pos
        kinds.update({self.score_column: "number", self.probability_column: "number"})
        return dataset.with_columns(columns, kinds=kinds, key_values=key_values)


class MulticlassLogisticRegression(EstimatorBase):
    """Multinomial logistic regression (maximum entropy) trained with L-BFGS.

    Score is a fixed-length probability vector per row, aligned to the label vocabulary
    established at fit time; PredictedLabel is its argmax.
    """

    name = "maximum_entropy"
    task = "multiclass"

    def __init__(
        self,
        label_column: str = "Label",
        feature_column: str = "Features",
        predicted_column: str = "PredictedLabel",
        score_column: str = "Score",
        C: float = 1.0,
        max_iter: int = 1000,
        random_state: int | None = 42,
        estimator: Any | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            label_column=label_column,
            feature_column=feature_column,
            predicted_column=predicted_column,
            score_column=score_column,
            estimator=estimator,
            **kwargs,
        )
        self.C = C
        self.max_iter = max_iter
        self.random_state = random_state

    @property
    def output_kinds(self) -> dict[str, str]:
        return {self.predicted_column: "key", self.score_column: "vector"}

    def _make_backend(self) -> Any:
        from sklearn.linear_model import LogisticRegression as LR

        return LR(penalty="l2", C=self.C, max_iter=self.max_iter, solver="lbfgs", random_state=self.random_state)

    def transform(self, dataset: Dataset) -> Dataset:
        self.check_fitted()
        self.check_columns(dataset, self.apply_input_columns)
        X = self.features_matrix(dataset, self.feature_column)
        if len(X) == 0:
            scores = np.empty((0, len(self.classes_)), dtype=np.float64)
        else:
            scores = self.predict_proba(X)
        keys = np.argmax(scores, axis=1).astype(np.int64) if len(scores) else np.empty(0, dtype=np.int64)
        columns, kinds, key_values = self._predicted_column(keys)
        columns[self.score_column] = scores.astype(np.float32)
        kinds[self.score_column] = "vector"
        return dataset.with_columns(columns, kinds=kinds, key_values=key_values)
