"""Image chain end to end with a stub backbone: folder -> keys -> pixels -> features -> maximum entropy -> labels."""

import numpy as np
import pytest

from classification_framework.datasets import ImageFolderSource
from classification_framework.estimators import MulticlassLogisticRegression
from classification_framework.evaluation import MulticlassClassificationMetrics, evaluate
from classification_framework.exceptions import InsufficientDataError
from classification_framework.pipelines import FittedChain, build_image_chain
from classification_framework.prediction import predict


@pytest.fixture
def train_data(make_image_tree, tmp_path):
    return ImageFolderSource(make_image_tree(tmp_path / "Train", labels=("cat", "dog", "frog"), per_label=4)).load()


@pytest.fixture
def validate_data(make_image_tree, tmp_path):
    return ImageFolderSource(make_image_tree(tmp_path / "Validate", labels=("cat", "dog", "frog"), per_label=2)).load()


def test_image_chain_structure(image_config, mean_color_backbone):
    chain = build_image_chain(image_config, backbone=mean_color_backbone)
    assert [s.name for s in chain.steps] == [
        "map_value_to_key",
        "load_images",
        "resize_images",
        "extract_pixels",
        "pretrained_image_features",
        "maximum_entropy",
        "map_key_to_value",
    ]
    assert isinstance(chain.estimator, MulticlassLogisticRegression)
    assert chain.input_columns == ["Location", "Label"]


def test_train_and_validate(image_config, mean_color_backbone, train_data, validate_data):
    model = build_image_chain(image_config, backbone=mean_color_backbone).fit(train_data)
    assert model.estimator.classes_ == ("cat", "dog", "frog")

    scored = model.apply(validate_data)
    assert scored["Prediction"].tolist() == validate_data["Label"].tolist()
    assert scored["Score"].shape == (len(validate_data), 3)

    metrics = evaluate(model, validate_data, top_k=2)
    assert isinstance(metrics, MulticlassClassificationMetrics)
    assert metrics.micro_accuracy == 1.0
    assert len(metrics.per_class_log_loss) == 3
    assert all(np.isfinite(metrics.per_class_log_loss))


def test_predict_unlabeled_images(image_config, mean_color_backbone, train_data, validate_data):
    model = build_image_chain(image_config, backbone=mean_color_backbone).fit(train_data)
    unlabeled = validate_data.select(["Location"])
    results = predict(model, unlabeled, batch_size=4)
    assert len(results) == len(validate_data)
    assert [r.predicted_label for r in results] == validate_data["Label"].tolist()
    for r in results:
        assert r.class_names == ("cat", "dog", "frog")
        assert r.probability == pytest.approx(r.top_score)
        assert 0.0 <= r.probability <= 1.0


def test_unknown_validation_label(image_config, mean_color_backbone, train_data, make_image_tree, tmp_path):
    model = build_image_chain(image_config, backbone=mean_color_backbone).fit(train_data)
    odd = ImageFolderSource(make_image_tree(tmp_path / "Odd", labels=("cat",), per_label=2)).load()
    odd = odd.with_columns({"Label": np.array(["bird", "cat"], dtype=object)})
    scored = model.apply(odd)
    assert scored["Label"].tolist() == [-1, 0]
    assert scored["Prediction"].tolist() == ["cat", "cat"]


def test_save_load_predicts_identically(image_config, mean_color_backbone, train_data, validate_data, tmp_path):
    model = build_image_chain(image_config, backbone=mean_color_backbone).fit(train_data)
    path = model.save(tmp_path / "model.pkl")
    loaded = FittedChain.load(path)
    np.testing.assert_allclose(loaded.apply(validate_data)["Score"], model.apply(validate_data)["Score"])


def test_single_label_training_fails(image_config, mean_color_backbone, make_image_tree, tmp_path):
    data = ImageFolderSource(make_image_tree(tmp_path / "One", labels=("dog",), per_label=3)).load()
    with pytest.raises(InsufficientDataError):
        build_image_chain(image_config, backbone=mean_color_backbone).fit(data)
