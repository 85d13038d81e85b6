"""Image loading, resizing and pixel extraction (stateless). Decoding is delegated to Pillow."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image

from classification_framework.datasets import Dataset

from .base import TransformBase

logger = logging.getLogger(__name__)


class ImageNetSettings:
    """Input geometry and normalization constants for ImageNet-pretrained backbones."""

    image_height = 224
    image_width = 224
    mean = 117.0
    scale = 1.0
    channels_last = True


def _object_column(values: list[Any]) -> np.ndarray:
    col = np.empty(len(values), dtype=object)
    for i, v in enumerate(values):
        col[i] = v
    return col


class LoadImages(TransformBase):
    """Open each path in `input_column` (relative to `image_folder`) as an RGB image."""

    name = "load_images"

    def __init__(
        self,
        output_column: str = "input",
        input_column: str | None = "Location",
        image_folder: str | Path = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(output_column, input_column, **kwargs)
        self.image_folder = Path(image_folder) if image_folder else None

    @property
    def output_kinds(self) -> dict[str, str]:
        return {self.output_column: "image"}

    def _load(self, location: str) -> Image.Image:
        path = Path(location)
        if self.image_folder is not None and not path.is_absolute():
            path = self.image_folder / path
        with Image.open(path) as img:
            return img.convert("RGB")

    def transform(self, dataset: Dataset) -> Dataset:
        self.check_columns(dataset, self.apply_input_columns)
        images = [self._load(loc) for loc in dataset[self.input_column]]
        logger.debug("LoadImages: decoded %d images", len(images))
        return dataset.with_columns({self.output_column: _object_column(images)}, kinds={self.output_column: "image"})


class ResizeImages(TransformBase):
    """Resize every image to a fixed width x height."""

    name = "resize_images"

    def __init__(
        self,
        output_column: str = "input",
        input_column: str | None = None,
        image_width: int = ImageNetSettings.image_width,
        image_height: int = ImageNetSettings.image_height,
        **kwargs: Any,
    ) -> None:
        super().__init__(output_column, input_column, **kwargs)
        if image_width <= 0 or image_height <= 0:
            raise ValueError(f"Image size must be positive, got {image_width}x{image_height}")
        self.image_width = int(image_width)
        self.image_height = int(image_height)

    @property
    def output_kinds(self) -> dict[str, str]:
        return {self.output_column: "image"}

    def transform(self, dataset: Dataset) -> Dataset:
        self.check_columns(dataset, self.apply_input_columns)
        size = (self.image_width, self.image_height)
        resized = [img.resize(size, Image.Resampling.BILINEAR) for img in dataset[self.input_column]]
        return dataset.with_columns({self.output_column: _object_column(resized)}, kinds={self.output_column: "image"})


class ExtractPixels(TransformBase):
    """Convert images to float32 arrays: (pixel - offset) * scale.

    interleave=True keeps channels last (H, W, C); otherwise channels first (C, H, W).
    Output column shape is (n_rows, ...) so it stacks into one numeric block.
    """

    name = "extract_pixels"

    def __init__(
        self,
        output_column: str = "input",
        input_column: str | None = None,
        interleave: bool = ImageNetSettings.channels_last,
        offset: float = 0.0,
        scale: float = 1.0,
        **kwargs: Any,
    ) -> None:
        super().__init__(output_column, input_column, **kwargs)
        self.interleave = bool(interleave)
        self.offset = float(offset)
        self.scale = float(scale)

    @property
    def output_kinds(self) -> dict[str, str]:
        return {self.output_column: "vector"}

    def _pixels(self, img: Image.Image) -> np.ndarray:
        arr = np.asarray(img, dtype=np.float32)
        if arr.ndim == 2:
            arr = arr[:, :, None]
        arr = (arr - self.offset) * self.scale
        if not self.interleave:
            arr = np.transpose(arr, (2, 0, 1))
        return arr

    def transform(self, dataset: Dataset) -> Dataset:
        self.check_columns(dataset, self.apply_input_columns)
        images = dataset[self.input_column]
        if len(images) == 0:
            pixels = np.empty((0,), dtype=np.float32)
        else:
            pixels = np.stack([self._pixels(img) for img in images]).astype(np.float32)
        return dataset.with_columns({self.output_column: pixels}, kinds={self.output_column: "vector"})
