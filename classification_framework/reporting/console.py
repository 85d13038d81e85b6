"""Human-readable console reports for metrics and predictions."""

from typing import Any

import numpy as np

from classification_framework.evaluation.metrics import BinaryClassificationMetrics, MulticlassClassificationMetrics
from classification_framework.prediction import PredictionResult

_RULE = "=" * 61


def format_binary_report(metrics: BinaryClassificationMetrics, model_name: str = "binary classification") -> str:
    lines = [
        _RULE,
        f"Metrics for {model_name} model",
        _RULE,
        f"Accuracy: {metrics.accuracy:.2%}",
        f"Auc: {metrics.auc:.2%}",
        f"F1Score: {metrics.f1_score:.2%}",
        f"LogLoss: {metrics.log_loss:.4f}",
        f"Rows: {metrics.n_rows}",
        _RULE,
    ]
    return "\n".join(lines)


def format_multiclass_report(metrics: MulticlassClassificationMetrics, model_name: str = "multiclass classification") -> str:
    per_class = " , ".join(f"{v:.4f}" for v in metrics.per_class_log_loss)
    lines = [
        _RULE,
        f"Metrics for {model_name} model",
        _RULE,
        f"MicroAccuracy: {metrics.micro_accuracy:.2%}",
        f"MacroAccuracy: {metrics.macro_accuracy:.2%}",
        f"LogLoss is: {metrics.log_loss:.4f}",
        f"PerClassLogLoss is: {per_class}",
        f"Top{metrics.top_k}Accuracy: {metrics.top_k_accuracy:.2%}",
        _RULE,
    ]
    return "\n".join(lines)


def format_metrics_report(metrics: Any, model_name: str | None = None) -> str:
    if isinstance(metrics, BinaryClassificationMetrics):
        return format_binary_report(metrics, model_name or "binary classification")
    if isinstance(metrics, MulticlassClassificationMetrics):
        return format_multiclass_report(metrics, model_name or "multiclass classification")
    raise TypeError(f"No report format for {type(metrics).__name__}")


def format_prediction_line(result: PredictionResult, input_field: str | None = None) -> str:
    """One line per prediction: '<input> | Prediction: <label> | Probability: <p>'."""
    if input_field is None:
        input_field = next(iter(result.fields), None)
    shown = result.fields.get(input_field) if input_field else None
    label = result.predicted_label
    if isinstance(label, bool):
        label = "Positive" if label else "Negative"
    line = f"{shown} | Prediction: {label} | Probability: {result.probability:.4f}"
    if isinstance(result.score, np.ndarray) and result.class_names:
        ranked = np.argsort(result.score)[::-1][:3]
        top = ", ".join(f"{result.class_names[i]}={float(result.score[i]):.3f}" for i in ranked)
        line += f" | Top: {top}"
    return line


def format_location_line(result: PredictionResult, location_field: str = "Location") -> str:
    """'<location>, <predicted label>, <max score>' for image predictions."""
    return f"{result.fields.get(location_field)}, {result.predicted_label}, {result.top_score:.6f}"
