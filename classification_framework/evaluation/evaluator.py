"""Evaluate a fitted chain on held-out data: apply once, then aggregate (prediction, label) pairs."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np

from classification_framework.datasets import Dataset
from classification_framework.exceptions import InsufficientDataError, PipelineError, SchemaMismatchError
from classification_framework.pipelines import FittedChain, TransformChain
from classification_framework.utils.splits import k_fold_splits

from .metrics import (
    BinaryClassificationMetrics,
    MulticlassClassificationMetrics,
    compute_binary_metrics,
    compute_multiclass_metrics,
)

logger = logging.getLogger(__name__)

Metrics = BinaryClassificationMetrics | MulticlassClassificationMetrics


def _estimator(fitted_chain: FittedChain):
    est = fitted_chain.estimator
    if est is None:
        raise PipelineError(f"Chain '{fitted_chain.name}' has no estimator to evaluate")
    return est


def _scored(fitted_chain: FittedChain, test: Dataset, label_column: str) -> Dataset:
    if len(test) == 0:
        raise InsufficientDataError("Cannot evaluate on an empty dataset")
    if label_column not in test:
        raise SchemaMismatchError("evaluate", label_column, test.column_names)
    return fitted_chain.apply(test)


def evaluate_binary(
    fitted_chain: FittedChain,
    test: Dataset,
    label_column: str | None = None,
    predicted_column: str | None = None,
    probability_column: str | None = None,
    score_column: str | None = None,
) -> BinaryClassificationMetrics:
    est = _estimator(fitted_chain)
    label_column = label_column or est.label_column
    predicted_column = predicted_column or est.predicted_column
    probability_column = probability_column or getattr(est, "probability_column", "Probability")
    score_column = score_column or est.score_column
    scored = _scored(fitted_chain, test, label_column)

    y_true = est.encode_labels(scored, label_column)
    y_pred = est.encode_labels(scored, predicted_column)
    known = y_true >= 0
    if not np.all(known):
        logger.warning("evaluate_binary: ignoring %d rows with labels outside %s", int(np.sum(~known)), est.classes_)
    p_pos = np.asarray(scored[probability_column], dtype=np.float64)
    scores = np.asarray(scored[score_column], dtype=np.float64)
    metrics = compute_binary_metrics(y_true[known], y_pred[known], p_pos[known], scores[known])
    logger.info("Binary evaluation on %d rows: accuracy=%.4f auc=%.4f f1=%.4f",
                metrics.n_rows, metrics.accuracy, metrics.auc, metrics.f1_score)
    return metrics


def evaluate_multiclass(
    fitted_chain: FittedChain,
    test: Dataset,
    label_column: str | None = None,
    predicted_column: str | None = None,
    score_column: str | None = None,
    top_k: int = 5,
) -> MulticlassClassificationMetrics:
    est = _estimator(fitted_chain)
    label_column = label_column or est.label_column
    predicted_column = predicted_column or est.predicted_column
    score_column = score_column or est.score_column
    scored = _scored(fitted_chain, test, label_column)

    y_true = est.encode_labels(scored, label_column)
    y_pred = est.encode_labels(scored, predicted_column)
    proba = np.asarray(scored[score_column], dtype=np.float64)
    metrics = compute_multiclass_metrics(y_true, y_pred, proba, est.classes_, top_k=top_k)
    logger.info("Multiclass evaluation on %d rows: micro_accuracy=%.4f log_loss=%.4f",
                metrics.n_rows, metrics.micro_accuracy, metrics.log_loss)
    return metrics


def evaluate(
    fitted_chain: FittedChain,
    test: Dataset,
    label_column: str | None = None,
    predicted_column: str | None = None,
    **kwargs: Any,
) -> Metrics:
    """Apply `fitted_chain` to `test` and compute metrics for its estimator's task."""
    est = _estimator(fitted_chain)
    if est.task == "binary":
        return evaluate_binary(fitted_chain, test, label_column, predicted_column, **kwargs)
    if est.task == "multiclass":
        return evaluate_multiclass(fitted_chain, test, label_column, predicted_column, **kwargs)
    raise PipelineError(f"Unsupported estimator task '{est.task}'")


def cross_validate(
    chain: TransformChain,
    dataset: Dataset,
    n_folds: int = 5,
    seed: int | None = 42,
) -> list[dict[str, Any]]:
    """Fit and evaluate `chain` on each of `n_folds` folds. Returns [{"fold", "model", "metrics"}, ...]."""
    results = []
    for i, split in enumerate(k_fold_splits(dataset, n_folds=n_folds, seed=seed)):
        model = chain.fit(split.train)
        metrics = evaluate(model, split.test)
        logger.info("Fold %d/%d: accuracy=%.4f", i + 1, n_folds, metrics.accuracy)
        results.append({"fold": i, "model": model, "metrics": metrics})
    return results


def mean_metric(results: list[dict[str, Any]], name: str = "accuracy") -> float:
    """Average one scalar metric across cross-validation folds."""
    if not results:
        return 0.0
    return float(np.mean([getattr(r["metrics"], name) for r in results]))
