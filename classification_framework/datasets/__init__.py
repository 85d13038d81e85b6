"""Data sources producing labeled records, and the immutable Dataset they load into."""

from .base import DataSource, Dataset, InMemorySource, COLUMN_KINDS
from .image_folder import ImageFolderSource
from .text_file import TextFileSource, parse_bool

__all__ = [
    "DataSource",
    "Dataset",
    "InMemorySource",
    "COLUMN_KINDS",
    "ImageFolderSource",
    "TextFileSource",
    "parse_bool",
]

DATASET_REGISTRY: dict[str, type] = {
    "image_folder": ImageFolderSource,
    "text_file": TextFileSource,
    "in_memory": InMemorySource,
}


def get_dataset_loader(name: str) -> type[DataSource]:
    """Get data source class by name."""
    if name not in DATASET_REGISTRY:
        raise KeyError(f"Unknown dataset '{name}'. Available: {list(DATASET_REGISTRY.keys())}")
    return DATASET_REGISTRY[name]
