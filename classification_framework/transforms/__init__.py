"""Transforms: schema-to-schema steps (stateless or fitted) that make up a TransformChain."""

from .base import TransformBase
from .conversion import MapValueToKey, MapKeyToValue, UNKNOWN_KEY
from .image import LoadImages, ResizeImages, ExtractPixels, ImageNetSettings
from .pretrained import PretrainedImageFeatures, TorchvisionBackbone
from .text import FeaturizeText

TRANSFORM_REGISTRY: dict[str, type[TransformBase]] = {
    "map_value_to_key": MapValueToKey,
    "map_key_to_value": MapKeyToValue,
    "load_images": LoadImages,
    "resize_images": ResizeImages,
    "extract_pixels": ExtractPixels,
    "pretrained_image_features": PretrainedImageFeatures,
    "featurize_text": FeaturizeText,
}

__all__ = [
    "TransformBase",
    "MapValueToKey",
    "MapKeyToValue",
    "UNKNOWN_KEY",
    "LoadImages",
    "ResizeImages",
    "ExtractPixels",
    "ImageNetSettings",
    "PretrainedImageFeatures",
    "TorchvisionBackbone",
    "FeaturizeText",
    "TRANSFORM_REGISTRY",
]
