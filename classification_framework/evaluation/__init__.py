"""Evaluation of fitted chains on held-out data, and the metrics they report."""

from .evaluator import (
    evaluate,
    evaluate_binary,
    evaluate_multiclass,
    cross_validate,
    mean_metric,
    Metrics,
)
from .metrics import (
    BinaryClassificationMetrics,
    MulticlassClassificationMetrics,
    accuracy,
    binary_log_loss,
    multiclass_log_loss,
    per_class_log_loss,
    compute_binary_metrics,
    compute_multiclass_metrics,
    EPS,
)

__all__ = [
    "evaluate",
    "evaluate_binary",
    "evaluate_multiclass",
    "cross_validate",
    "mean_metric",
    "Metrics",
    "BinaryClassificationMetrics",
    "MulticlassClassificationMetrics",
    "accuracy",
    "binary_log_loss",
    "multiclass_log_loss",
    "per_class_log_loss",
    "compute_binary_metrics",
    "compute_multiclass_metrics",
    "EPS",
]
