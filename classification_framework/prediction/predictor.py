"""Apply a fitted chain to new (possibly unlabeled) records and return one result per record, in order."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping, Sequence

import numpy as np

from classification_framework.datasets import Dataset, InMemorySource
from classification_framework.exceptions import PipelineError
from classification_framework.pipelines import FittedChain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredictionResult:
    """Original fields of one record plus the model's output for it.

    For a binary model `probability` is P(positive) and `score` the raw margin.
    For a multiclass model `score` is the per-class array in vocabulary order and `probability`
    is its maximum (the probability of the predicted label).
    """

    fields: Mapping[str, Any]
    predicted_label: Any
    score: Any
    probability: float
    class_names: tuple[Any, ...] = field(default=())

    @property
    def top_score(self) -> float:
        if isinstance(self.score, np.ndarray):
            return float(np.max(self.score)) if self.score.size else 0.0
        return float(self.score)


def _as_dataset(records: Dataset | Iterable[Mapping[str, Any]], columns: Sequence[str] | None) -> Dataset:
    if isinstance(records, Dataset):
        return records
    return InMemorySource(records, columns=columns).load()


def iter_predictions(
    fitted_chain: FittedChain,
    records: Dataset | Iterable[Mapping[str, Any]],
    columns: Sequence[str] | None = None,
    batch_size: int | None = None,
) -> Iterator[PredictionResult]:
    """Lazily yield PredictionResult in input order. With `batch_size`, the chain runs one batch at a time."""
    est = fitted_chain.estimator
    if est is None:
        raise PipelineError(f"Chain '{fitted_chain.name}' has no estimator to predict with")
    dataset = _as_dataset(records, columns)
    original = dataset.column_names
    n = len(dataset)
    step = batch_size or max(n, 1)
    probability_column = getattr(est, "probability_column", None)
    for start in range(0, n, step):
        batch = dataset.take(np.arange(start, min(start + step, n)))
        scored = fitted_chain.apply(batch)
        for source, out in zip(batch.iter_records(), scored.iter_records()):
            predicted = out[est.predicted_column]
            if est.label_kind_ == "key" and 0 <= int(predicted) < len(est.classes_):
                predicted = est.classes_[int(predicted)]
            score = out[est.score_column]
            if probability_column and probability_column in out:
                probability = float(out[probability_column])
            else:
                probability = float(np.max(score)) if np.size(score) else 0.0
            yield PredictionResult(
                fields={k: source[k] for k in original},
                predicted_label=predicted,
                score=score,
                probability=probability,
                class_names=tuple(est.classes_ or ()),
            )


def predict(
    fitted_chain: FittedChain,
    records: Dataset | Iterable[Mapping[str, Any]],
    columns: Sequence[str] | None = None,
    batch_size: int | None = None,
) -> list[PredictionResult]:
    """Predict every record. len(result) == len(records), same order."""
    results = list(iter_predictions(fitted_chain, records, columns=columns, batch_size=batch_size))
    logger.info("Predicted %d records with chain '%s'", len(results), fitted_chain.name)
    return results
