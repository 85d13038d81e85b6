"""TransformChain / FittedChain: schema validation, sequential fit, deterministic apply, persistence."""

import numpy as np
import pytest

from classification_framework.datasets import Dataset
from classification_framework.estimators import BinaryLogisticRegression
from classification_framework.exceptions import (
    InsufficientDataError,
    PipelineError,
    SchemaMismatchError,
)
from classification_framework.pipelines import (
    CHAIN_BUILDERS,
    FittedChain,
    TransformChain,
    build_chain,
    build_sentiment_chain,
)
from classification_framework.transforms import FeaturizeText


def test_schema_mismatch_at_construction():
    with pytest.raises(SchemaMismatchError) as exc:
        TransformChain(
            [FeaturizeText("Features", "Review"), BinaryLogisticRegression()],
            input_columns=["SentimentText", "Label"],
        )
    assert exc.value.column == "Review"
    assert "step 0" in exc.value.step


def test_schema_mismatch_between_steps():
    with pytest.raises(SchemaMismatchError) as exc:
        TransformChain(
            [FeaturizeText("Vec", "SentimentText"), BinaryLogisticRegression(feature_column="Features")],
            input_columns=["SentimentText", "Label"],
        )
    assert exc.value.column == "Features"
    assert "Vec" in exc.value.available


def test_output_columns_and_append():
    chain = TransformChain([FeaturizeText()], input_columns=["SentimentText", "Label"])
    longer = chain.append(BinaryLogisticRegression())
    assert len(chain) == 1 and len(longer) == 2
    assert chain.estimator is None
    assert isinstance(longer.estimator, BinaryLogisticRegression)
    assert longer.output_columns == ["SentimentText", "Label", "Features", "PredictedLabel", "Score", "Probability"]


def test_fit_empty_dataset(sentiment_dataset):
    chain = build_sentiment_chain({})
    with pytest.raises(InsufficientDataError):
        chain.fit(sentiment_dataset.take([]))


def test_fit_missing_input_column():
    chain = build_sentiment_chain({})
    with pytest.raises(SchemaMismatchError):
        chain.fit(Dataset({"SentimentText": ["a", "b"]}))


def test_fit_does_not_touch_chain_or_data(sentiment_dataset):
    chain = build_sentiment_chain({})
    before = sentiment_dataset.column_names
    model = chain.fit(sentiment_dataset)
    assert not any(step.is_fitted for step in chain.steps if step.requires_fit)
    assert all(step.is_fitted for step in model.steps)
    assert sentiment_dataset.column_names == before
    assert "Features" not in sentiment_dataset


def test_apply_is_deterministic(sentiment_dataset):
    model = build_sentiment_chain({}).fit(sentiment_dataset)
    a = model.apply(sentiment_dataset)
    b = model.apply(sentiment_dataset)
    for column in ("PredictedLabel", "Score", "Probability"):
        np.testing.assert_array_equal(a[column], b[column])
    assert len(a) == len(sentiment_dataset)


def test_apply_schema_check(sentiment_dataset):
    model = build_sentiment_chain({}).fit(sentiment_dataset)
    with pytest.raises(SchemaMismatchError):
        model.apply(Dataset({"Text": ["hello"]}))


def test_fitted_chain_rejects_unfitted_steps():
    with pytest.raises(PipelineError):
        FittedChain([FeaturizeText()], input_columns=["SentimentText"])


def test_save_and_load(sentiment_dataset, tmp_path):
    model = build_sentiment_chain({}).fit(sentiment_dataset)
    path = model.save(tmp_path / "models" / "sentiment.pkl")
    assert path.exists()
    loaded = FittedChain.load(path)
    assert loaded.name == "sentiment"
    np.testing.assert_allclose(
        loaded.apply(sentiment_dataset)["Probability"],
        model.apply(sentiment_dataset)["Probability"],
    )


def test_load_missing_and_foreign_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        FittedChain.load(tmp_path / "none.pkl")
    import pickle

    bogus = tmp_path / "bogus.pkl"
    bogus.write_bytes(pickle.dumps({"something": 1}))
    with pytest.raises(PipelineError):
        FittedChain.load(bogus)


def test_build_chain_from_step_configs(numeric_binary_dataset):
    chain = build_chain(
        [{"name": "logistic_regression", "C": 10.0}],
        input_columns=["Features", "Label"],
        name="numeric",
    )
    model = chain.fit(numeric_binary_dataset)
    assert model.name == "numeric"
    assert model.estimator.C == 10.0
    with pytest.raises(KeyError):
        build_chain([{"name": "svm"}], input_columns=["Features"])


def test_chain_builders_registry():
    assert set(CHAIN_BUILDERS) == {"sentiment", "image"}
