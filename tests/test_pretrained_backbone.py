"""TorchvisionBackbone with randomly initialised weights (no download)."""

import pickle

import numpy as np
import pytest

torch = pytest.importorskip("torch")
pytest.importorskip("torchvision")

from classification_framework.datasets import Dataset  # noqa: E402
from classification_framework.transforms import PretrainedImageFeatures, TorchvisionBackbone  # noqa: E402


@pytest.fixture
def backbone():
    torch.manual_seed(0)
    return TorchvisionBackbone("resnet18", weights=None, device="cpu")


def test_backbone_outputs_logits(backbone):
    batch = np.random.default_rng(0).normal(size=(2, 3, 64, 64)).astype(np.float32)
    out = backbone(batch)
    assert out.shape == (2, 1000)
    assert out.dtype == np.float32


def test_backbone_pickles_without_weights(backbone):
    backbone(np.zeros((1, 3, 32, 32), dtype=np.float32))
    restored = pickle.loads(pickle.dumps(backbone))
    assert restored._model is None
    assert restored.model_name == "resnet18"


def test_features_transform_channels_last(backbone):
    pixels = np.zeros((3, 32, 32, 3), dtype=np.float32)
    step = PretrainedImageFeatures("feat", "input", channels_last=True, batch_size=2, backbone=backbone)
    out = step.transform(Dataset({"input": pixels}))
    assert out["feat"].shape == (3, 1000)
