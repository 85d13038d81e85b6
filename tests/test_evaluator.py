"""Evaluation of fitted chains on held-out data, plus cross-validation."""

import math

import numpy as np
import pytest

from classification_framework.datasets import Dataset
from classification_framework.estimators import BinaryLogisticRegression, MulticlassLogisticRegression
from classification_framework.evaluation import (
    BinaryClassificationMetrics,
    MulticlassClassificationMetrics,
    cross_validate,
    evaluate,
    mean_metric,
)
from classification_framework.exceptions import InsufficientDataError, PipelineError, SchemaMismatchError
from classification_framework.pipelines import TransformChain, build_sentiment_chain
from classification_framework.transforms import FeaturizeText
from classification_framework.utils import train_test_split


def _numeric_chain():
    return TransformChain([BinaryLogisticRegression()], input_columns=["Features", "Label"], name="numeric")


def test_binary_perfect_accuracy(numeric_binary_dataset):
    model = _numeric_chain().fit(numeric_binary_dataset)
    metrics = evaluate(model, numeric_binary_dataset)
    assert isinstance(metrics, BinaryClassificationMetrics)
    assert metrics.accuracy == 1.0
    assert metrics.auc == 1.0
    assert metrics.f1_score == 1.0
    assert metrics.n_rows == len(numeric_binary_dataset)


def test_binary_all_wrong(numeric_binary_dataset):
    model = _numeric_chain().fit(numeric_binary_dataset)
    flipped = numeric_binary_dataset.with_columns({"Label": ~numeric_binary_dataset["Label"]})
    metrics = evaluate(model, flipped)
    assert metrics.accuracy == 0.0
    assert math.isfinite(metrics.log_loss)


def test_sentiment_end_to_end(sentiment_dataset):
    train, test = train_test_split(sentiment_dataset, test_fraction=0.25, seed=3)
    model = build_sentiment_chain({}).fit(train)
    metrics = evaluate(model, test)
    assert 0.0 <= metrics.accuracy <= 1.0
    assert metrics.n_rows == len(test) == 6
    assert all(math.isfinite(v) for k, v in metrics.as_dict().items())


def test_multiclass_metrics():
    rng = np.random.default_rng(1)
    X = np.vstack([rng.normal(c, 0.2, size=(5, 2)) for c in ((-3, 0), (3, 0), (0, 3))])
    ds = Dataset({"Features": X, "Label": ["a"] * 5 + ["b"] * 5 + ["c"] * 5})
    chain = TransformChain([MulticlassLogisticRegression()], input_columns=["Features", "Label"])
    metrics = evaluate(chain.fit(ds), ds, top_k=2)
    assert isinstance(metrics, MulticlassClassificationMetrics)
    assert metrics.micro_accuracy == 1.0
    assert metrics.class_names == ("a", "b", "c")
    assert len(metrics.per_class_log_loss) == 3
    assert metrics.top_k_accuracy == 1.0


def test_evaluate_requires_label(numeric_binary_dataset):
    model = _numeric_chain().fit(numeric_binary_dataset)
    with pytest.raises(SchemaMismatchError):
        evaluate(model, numeric_binary_dataset.select(["Features"]))


def test_evaluate_empty(numeric_binary_dataset):
    model = _numeric_chain().fit(numeric_binary_dataset)
    with pytest.raises(InsufficientDataError):
        evaluate(model, numeric_binary_dataset.take([]))


def test_evaluate_needs_estimator(sentiment_dataset):
    model = TransformChain([FeaturizeText()], input_columns=["SentimentText"]).fit(sentiment_dataset)
    with pytest.raises(PipelineError):
        evaluate(model, sentiment_dataset)


def test_cross_validate(numeric_binary_dataset):
    results = cross_validate(_numeric_chain(), numeric_binary_dataset, n_folds=5, seed=0)
    assert [r["fold"] for r in results] == [0, 1, 2, 3, 4]
    assert 0.0 <= mean_metric(results, "accuracy") <= 1.0
    assert mean_metric([], "accuracy") == 0.0
