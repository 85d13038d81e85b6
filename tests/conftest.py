"""Shared fixtures: tiny labeled datasets, an on-disk image tree and stub backends."""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from classification_framework.datasets import Dataset

POSITIVE = [
    "I love this spaghetti",
    "Great food and friendly staff",
    "Wonderful meal, will come back",
    "The phone works great",
    "Excellent sound quality, love it",
    "Really good value and great battery",
    "Best purchase I have made, love it",
    "Very happy with this, great product",
    "Nice design and works well",
    "Good quality, highly recommend",
    "I love the screen, great colors",
    "Fantastic service, good experience",
]

NEGATIVE = [
    "This was a horrible meal",
    "I hate this",
    "Terrible service and bad food",
    "The phone broke after a day, awful",
    "Worst purchase ever, do not buy",
    "Bad sound quality, very disappointing",
    "Poor battery and cheap build",
    "I hate the screen, terrible colors",
    "Awful experience, waste of money",
    "Horrible design and does not work",
    "Very bad quality, returned it",
    "Disappointing and poor value",
]


class MeanColorBackbone:
    """Stand-in for a pretrained CNN: per-channel means of an (n, C, H, W) batch."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, batch: np.ndarray) -> np.ndarray:
        self.calls += 1
        return batch.mean(axis=(2, 3)).astype(np.float32)


class ConstantProbabilityBackend:
    """sklearn-style backend that returns the same class distribution for every row."""

    def __init__(self, proba: list[float]) -> None:
        self.proba = np.asarray(proba, dtype=np.float64)
        self.fit_calls = 0

    def fit(self, X, y):
        self.fit_calls += 1
        self.classes_ = np.arange(len(self.proba))
        self.n_features_in_ = X.shape[1]
        return self

    def predict_proba(self, X):
        return np.tile(self.proba, (len(X), 1))


@pytest.fixture
def sentiment_records():
    return [{"SentimentText": t, "Label": True} for t in POSITIVE] + [
        {"SentimentText": t, "Label": False} for t in NEGATIVE
    ]


@pytest.fixture
def sentiment_dataset(sentiment_records):
    return Dataset.from_records(sentiment_records, kinds={"SentimentText": "text", "Label": "bool"})


@pytest.fixture
def numeric_binary_dataset():
    """Linearly separable 1-D problem: Label is True iff the feature is positive."""
    x = np.array([-3.0, -2.5, -2.0, -1.5, -1.0, 1.0, 1.5, 2.0, 2.5, 3.0])
    return Dataset({"Features": x.reshape(-1, 1), "Label": x > 0})


COLORS = {
    "cat": (220, 30, 30),
    "dog": (30, 30, 220),
    "frog": (30, 200, 30),
}


def write_image_tree(root: Path, labels=("cat", "dog"), per_label: int = 4, size=(12, 10)) -> Path:
    """<root>/<label>/<label>_<i>.jpg filled with a label-specific color plus a little noise."""
    rng = np.random.default_rng(0)
    for label in labels:
        d = root / label
        d.mkdir(parents=True, exist_ok=True)
        base = np.array(COLORS[label], dtype=np.int16)
        for i in range(per_label):
            noise = rng.integers(-10, 10, size=(size[1], size[0], 3))
            pixels = np.clip(base + noise, 0, 255).astype(np.uint8)
            Image.fromarray(pixels).save(d / f"{label}_{i}.jpg")
    return root


@pytest.fixture
def image_tree(tmp_path):
    return write_image_tree(tmp_path / "Train")


@pytest.fixture
def image_config():
    return {
        "image": {
            "width": 16,
            "height": 16,
            "offset": 117.0,
            "scale": 1.0,
            "channels_last": True,
            "batch_size": 3,
            "estimator": {"name": "maximum_entropy", "C": 10.0},
        }
    }


@pytest.fixture
def mean_color_backbone():
    return MeanColorBackbone()


@pytest.fixture
def constant_backend():
    """Factory: constant_backend([0.3, 0.7]) -> ConstantProbabilityBackend."""
    return ConstantProbabilityBackend


@pytest.fixture
def make_image_tree():
    return write_image_tree
