"""Pretrained CNN scoring: pixel tensors -> pre-softmax activations of an ImageNet network."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import numpy as np

from classification_framework.datasets import Dataset

from .base import TransformBase

logger = logging.getLogger(__name__)

# (n, C, H, W) float32 -> (n, n_features)
Backbone = Callable[[np.ndarray], np.ndarray]


class TorchvisionBackbone:
    """Frozen torchvision classifier used as a feature extractor.

    The default GoogLeNet is Inception v1; its final layer output is the pre-softmax activation
    vector (1000 ImageNet logits). The network is loaded on first call and is not pickled:
    the weights are fixed, so a reloaded model fetches them again from the torchvision cache.
    """

    def __init__(self, model_name: str = "googlenet", weights: str = "DEFAULT", device: str | None = None) -> None:
        self.model_name = model_name
        self.weights = weights
        self.device = device
        self._model = None

    def _ensure_model(self):
        if self._model is not None:
            return self._model
        import torch
        import torchvision

        device = self.device or ("cuda" if torch.cuda.is_available() else "cpu")
        logger.info("Loading pretrained %s (weights=%s) on %s", self.model_name, self.weights, device)
        model = torchvision.models.get_model(self.model_name, weights=self.weights)
        model.eval()
        self._model = model.to(device)
        self.device = device
        return self._model

    def __call__(self, batch: np.ndarray) -> np.ndarray:
        import torch

        model = self._ensure_model()
        with torch.no_grad():
            x = torch.from_numpy(np.ascontiguousarray(batch, dtype=np.float32)).to(self.device)
            out = model(x)
            if isinstance(out, tuple):
                out = out[0]
        return out.cpu().numpy().astype(np.float32)

    def __getstate__(self) -> dict[str, Any]:
        state = self.__dict__.copy()
        state["_model"] = None
        return state


class PretrainedImageFeatures(TransformBase):
    """Score pixel arrays with a pretrained network and emit its activations as a feature vector.

    `backbone` is any callable mapping a channels-first float32 batch to a 2-D feature matrix,
    so tests and alternative libraries can substitute their own extractor.
    """

    name = "pretrained_image_features"

    def __init__(
        self,
        output_column: str = "softmax2_pre_activation",
        input_column: str | None = "input",
        model_name: str = "googlenet",
        channels_last: bool = True,
        batch_size: int = 32,
        backbone: Backbone | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(output_column, input_column, **kwargs)
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.model_name = model_name
        self.channels_last = bool(channels_last)
        self.batch_size = int(batch_size)
        self.backbone = backbone if backbone is not None else TorchvisionBackbone(model_name)

    @property
    def output_kinds(self) -> dict[str, str]:
        return {self.output_column: "vector"}

    def transform(self, dataset: Dataset) -> Dataset:
        self.check_columns(dataset, self.apply_input_columns)
        pixels = np.asarray(dataset[self.input_column], dtype=np.float32)
        if len(pixels) == 0:
            return dataset.with_columns(
                {self.output_column: np.empty((0, 0), dtype=np.float32)},
                kinds={self.output_column: "vector"},
            )
        if pixels.ndim == 3:
            # single-channel images without a channel axis
            pixels = pixels[:, None, :, :] if not self.channels_last else pixels[..., None]
        if self.channels_last:
            pixels = np.transpose(pixels, (0, 3, 1, 2))
        start = time.perf_counter()
        chunks = [
            np.asarray(self.backbone(pixels[i : i + self.batch_size]), dtype=np.float32)
            for i in range(0, len(pixels), self.batch_size)
        ]
        features = np.concatenate(chunks, axis=0).reshape(len(pixels), -1)
        logger.debug(
            "%s: %d images -> %s in %.1f ms",
            self.describe(), len(pixels), features.shape, (time.perf_counter() - start) * 1e3,
        )
        return dataset.with_columns({self.output_column: features}, kinds={self.output_column: "vector"})
