"""Prediction on unlabeled records: one result per record, input order preserved."""

import numpy as np
import pytest

from classification_framework.exceptions import PipelineError, SchemaMismatchError
from classification_framework.pipelines import TransformChain, build_sentiment_chain
from classification_framework.prediction import PredictionResult, iter_predictions, predict
from classification_framework.transforms import FeaturizeText


@pytest.fixture
def sentiment_model(sentiment_dataset):
    return build_sentiment_chain({}).fit(sentiment_dataset)


def test_predict_single_sentence(sentiment_model):
    results = predict(sentiment_model, [{"SentimentText": "I love this spaghetti"}])
    assert len(results) == 1
    r = results[0]
    assert isinstance(r, PredictionResult)
    assert isinstance(r.predicted_label, bool)
    assert 0.0 <= r.probability <= 1.0
    assert r.fields == {"SentimentText": "I love this spaghetti"}


def test_predict_order_and_count(sentiment_model):
    texts = ["This was a horrible meal", "I hate this", "I love this spaghetti", "great phone", "awful"]
    results = predict(sentiment_model, [{"SentimentText": t} for t in texts], batch_size=2)
    assert [r.fields["SentimentText"] for r in results] == texts
    unbatched = predict(sentiment_model, [{"SentimentText": t} for t in texts])
    np.testing.assert_allclose([r.probability for r in results], [r.probability for r in unbatched])


def test_predicted_label_agrees_with_probability(sentiment_model):
    for r in predict(sentiment_model, [{"SentimentText": "I love this"}, {"SentimentText": "I hate this"}]):
        assert r.predicted_label == (r.probability >= 0.5)


def test_predict_on_training_data_separates_classes(sentiment_model, sentiment_dataset):
    results = predict(sentiment_model, sentiment_dataset)
    acc = np.mean([r.predicted_label == r.fields["Label"] for r in results])
    assert acc >= 0.75


def test_predict_empty(sentiment_model):
    assert predict(sentiment_model, [], columns=["SentimentText"]) == []


def test_iter_predictions_is_lazy(sentiment_model):
    gen = iter_predictions(sentiment_model, [{"SentimentText": "ok"}])
    assert next(gen).fields["SentimentText"] == "ok"


def test_predict_missing_field(sentiment_model):
    with pytest.raises(SchemaMismatchError):
        predict(sentiment_model, [{"Text": "wrong column"}])


def test_predict_without_estimator(sentiment_dataset):
    model = TransformChain([FeaturizeText()], input_columns=["SentimentText"]).fit(sentiment_dataset)
    with pytest.raises(PipelineError):
        predict(model, [{"SentimentText": "hi"}])
