"""
Classification metrics: accuracy, AUC, F1, precision/recall, log-loss (clamped), per-class log-loss.
Every value returned here is a finite float; undefined cases are reported as 0.0.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any

import numpy as np

logger = logging.getLogger(__name__)

# Probabilities are clamped to [EPS, 1 - EPS] before taking logs.
EPS = 1e-15


def _finite(value: float) -> float:
    value = float(value)
    return value if np.isfinite(value) else 0.0


def clamp_probabilities(p: np.ndarray, eps: float = EPS) -> np.ndarray:
    return np.clip(np.asarray(p, dtype=np.float64), eps, 1.0 - eps)


def accuracy(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Fraction of exact matches."""
    y_true = np.asarray(y_true)
    if len(y_true) == 0:
        return 0.0
    return float(np.mean(y_true == np.asarray(y_pred)))


def log_loss_from_true_probability(p_true: np.ndarray, eps: float = EPS) -> float:
    """-mean(log p) over the probability each row assigned to its true class."""
    p_true = np.asarray(p_true, dtype=np.float64)
    if len(p_true) == 0:
        return 0.0
    return _finite(-np.mean(np.log(clamp_probabilities(p_true, eps))))


def binary_log_loss(y_true: np.ndarray, p_pos: np.ndarray, eps: float = EPS) -> float:
    y = np.asarray(y_true) == 1
    p = np.asarray(p_pos, dtype=np.float64)
    return log_loss_from_true_probability(np.where(y, p, 1.0 - p), eps)


def true_class_probability(y_true: np.ndarray, proba: np.ndarray) -> np.ndarray:
    """Probability assigned to each row's true class; rows with unknown labels (-1) get 0."""
    y = np.asarray(y_true, dtype=np.int64)
    proba = np.asarray(proba, dtype=np.float64)
    out = np.zeros(len(y), dtype=np.float64)
    known = (y >= 0) & (y < proba.shape[1]) if proba.ndim == 2 else np.zeros(len(y), dtype=bool)
    out[known] = proba[np.nonzero(known)[0], y[known]]
    return out


def multiclass_log_loss(y_true: np.ndarray, proba: np.ndarray, eps: float = EPS) -> float:
    return log_loss_from_true_probability(true_class_probability(y_true, proba), eps)


def per_class_log_loss(y_true: np.ndarray, proba: np.ndarray, n_classes: int, eps: float = EPS) -> list[float]:
    """Log-loss restricted to rows whose true label is class k, one value per class in vocabulary order."""
    y = np.asarray(y_true, dtype=np.int64)
    p_true = true_class_probability(y, proba)
    out = []
    for k in range(n_classes):
        mask = y == k
        if not np.any(mask):
            logger.warning("per_class_log_loss: class %d absent from evaluation data, reporting 0.0", k)
            out.append(0.0)
            continue
        out.append(log_loss_from_true_probability(p_true[mask], eps))
    return out


def prior_log_loss(y_true: np.ndarray, n_classes: int, eps: float = EPS) -> float:
    """Log-loss of always predicting the label frequencies of `y_true` (entropy of the labels)."""
    y = np.asarray(y_true, dtype=np.int64)
    y = y[(y >= 0) & (y < n_classes)]
    if len(y) == 0:
        return 0.0
    freq = np.bincount(y, minlength=n_classes) / len(y)
    return log_loss_from_true_probability(freq[y], eps)


def log_loss_reduction(loss: float, prior: float) -> float:
    """Relative improvement over the prior: (prior - loss) / prior."""
    if prior <= 0:
        return 0.0
    return _finite((prior - loss) / prior)


def roc_auc_binary(y_true: np.ndarray, scores: np.ndarray) -> float:
    from sklearn.metrics import roc_auc_score

    y = np.asarray(y_true)
    if len(np.unique(y)) < 2:
        logger.warning("AUC undefined with a single class in evaluation data, reporting 0.0")
        return 0.0
    return _finite(roc_auc_score(y, np.asarray(scores, dtype=np.float64)))


def auprc_binary(y_true: np.ndarray, scores: np.ndarray) -> float:
    from sklearn.metrics import average_precision_score

    y = np.asarray(y_true)
    if len(np.unique(y)) < 2:
        return 0.0
    return _finite(average_precision_score(y, np.asarray(scores, dtype=np.float64)))


def f1_binary(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    from sklearn.metrics import f1_score

    return _finite(f1_score(y_true, y_pred, pos_label=1, labels=[0, 1], zero_division=0))


def precision_recall(y_true: np.ndarray, y_pred: np.ndarray, label: int) -> tuple[float, float]:
    from sklearn.metrics import precision_score, recall_score

    kwargs = {"pos_label": label, "labels": [0, 1], "average": "binary", "zero_division": 0}
    return _finite(precision_score(y_true, y_pred, **kwargs)), _finite(recall_score(y_true, y_pred, **kwargs))


def macro_accuracy(y_true: np.ndarray, y_pred: np.ndarray, n_classes: int) -> float:
    """Per-class recall averaged over the classes present in y_true."""
    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    recalls = [float(np.mean(y_pred[y_true == k] == k)) for k in range(n_classes) if np.any(y_true == k)]
    return float(np.mean(recalls)) if recalls else 0.0


def top_k_accuracy(y_true: np.ndarray, proba: np.ndarray, k: int) -> float:
    y = np.asarray(y_true, dtype=np.int64)
    proba = np.asarray(proba, dtype=np.float64)
    if len(y) == 0:
        return 0.0
    k = max(1, min(k, proba.shape[1]))
    top = np.argsort(-proba, axis=1, kind="stable")[:, :k]
    return float(np.mean([yi in row for yi, row in zip(y, top)]))


def f1_macro(y_true: np.ndarray, y_pred: np.ndarray, n_classes: int) -> float:
    from sklearn.metrics import f1_score

    return _finite(f1_score(y_true, y_pred, average="macro", zero_division=0, labels=list(range(n_classes))))


def roc_auc_ovr(y_true: np.ndarray, proba: np.ndarray, n_classes: int) -> float:
    from sklearn.metrics import roc_auc_score
    from sklearn.preprocessing import label_binarize

    y = np.asarray(y_true, dtype=np.int64)
    present = set(np.unique(y[y >= 0]).tolist())
    if len(present) < n_classes or n_classes < 2:
        logger.warning("One-vs-rest AUC needs every class in evaluation data (%d of %d present), reporting 0.0",
                       len(present), n_classes)
        return 0.0
    if n_classes == 2:
        return roc_auc_binary(y, np.asarray(proba)[:, 1])
    known = y >= 0
    y_bin = label_binarize(y[known], classes=list(range(n_classes)))
    return _finite(roc_auc_score(y_bin, np.asarray(proba)[known], average="macro", multi_class="ovr"))


def confusion(y_true: np.ndarray, y_pred: np.ndarray, n_classes: int) -> np.ndarray:
    from sklearn.metrics import confusion_matrix

    y_true = np.asarray(y_true)
    y_pred = np.asarray(y_pred)
    known = y_true >= 0
    return confusion_matrix(y_true[known], y_pred[known], labels=list(range(n_classes)))


@dataclass(frozen=True)
class BinaryClassificationMetrics:
    accuracy: float
    auc: float
    f1_score: float
    positive_precision: float
    positive_recall: float
    negative_precision: float
    negative_recall: float
    auprc: float
    log_loss: float
    log_loss_reduction: float
    entropy: float
    n_rows: int

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MulticlassClassificationMetrics:
    micro_accuracy: float
    macro_accuracy: float
    log_loss: float
    log_loss_reduction: float
    per_class_log_loss: tuple[float, ...]
    top_k_accuracy: float
    f1_macro: float
    auc_macro: float
    class_names: tuple[Any, ...]
    confusion_matrix: tuple[tuple[int, ...], ...]
    n_rows: int
    top_k: int = field(default=5)

    @property
    def accuracy(self) -> float:
        return self.micro_accuracy

    def as_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["class_names"] = [str(c) for c in self.class_names]
        out["per_class_log_loss"] = list(self.per_class_log_loss)
        out["confusion_matrix"] = [list(r) for r in self.confusion_matrix]
        return out


def compute_binary_metrics(y_true: np.ndarray, y_pred: np.ndarray, p_pos: np.ndarray, scores: np.ndarray) -> BinaryClassificationMetrics:
    """y_true / y_pred are 0/1 indices (1 = positive class)."""
    y_true = np.asarray(y_true, dtype=np.int64)
    y_pred = np.asarray(y_pred, dtype=np.int64)
    loss = binary_log_loss(y_true, p_pos)
    prior = prior_log_loss(y_true, 2)
    pos_p, pos_r = precision_recall(y_true, y_pred, 1)
    neg_p, neg_r = precision_recall(y_true, y_pred, 0)
    return BinaryClassificationMetrics(
        accuracy=accuracy(y_true, y_pred),
        auc=roc_auc_binary(y_true, scores),
        f1_score=f1_binary(y_true, y_pred),
        positive_precision=pos_p,
        positive_recall=pos_r,
        negative_precision=neg_p,
        negative_recall=neg_r,
        auprc=auprc_binary(y_true, scores),
        log_loss=loss,
        log_loss_reduction=log_loss_reduction(loss, prior),
        entropy=prior,
        n_rows=int(len(y_true)),
    )


def compute_multiclass_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    proba: np.ndarray,
    class_names: tuple[Any, ...],
    top_k: int = 5,
) -> MulticlassClassificationMetrics:
    """y_true / y_pred are indices into class_names (-1 for labels outside the vocabulary)."""
    n_classes = len(class_names)
    y_true = np.asarray(y_true, dtype=np.int64)
    y_pred = np.asarray(y_pred, dtype=np.int64)
    loss = multiclass_log_loss(y_true, proba)
    cm = confusion(y_true, y_pred, n_classes)
    return MulticlassClassificationMetrics(
        micro_accuracy=accuracy(y_true, y_pred),
        macro_accuracy=macro_accuracy(y_true, y_pred, n_classes),
        log_loss=loss,
        log_loss_reduction=log_loss_reduction(loss, prior_log_loss(y_true, n_classes)),
        per_class_log_loss=tuple(per_class_log_loss(y_true, proba, n_classes)),
        top_k_accuracy=top_k_accuracy(y_true, proba, top_k),
        f1_macro=f1_macro(y_true, y_pred, n_classes),
        auc_macro=roc_auc_ovr(y_true, proba, n_classes),
        class_names=tuple(class_names),
        confusion_matrix=tuple(tuple(int(v) for v in row) for row in cm),
        n_rows=int(len(y_true)),
        top_k=min(top_k, n_classes),
    )
