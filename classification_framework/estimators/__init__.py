"""Estimators with unified API: fit(dataset), transform(dataset), predict_proba(X)."""

from .base import EstimatorBase
from .logistic_regression import BinaryLogisticRegression, MulticlassLogisticRegression

ESTIMATOR_REGISTRY: dict[str, type[EstimatorBase]] = {
    "logistic_regression": BinaryLogisticRegression,
    "maximum_entropy": MulticlassLogisticRegression,
}

__all__ = [
    "EstimatorBase",
    "BinaryLogisticRegression",
    "MulticlassLogisticRegression",
    "ESTIMATOR_REGISTRY",
]
