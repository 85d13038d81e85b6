"""Image records from a folder tree: <root>/<label>/*.jpg."""

import logging
from pathlib import Path
from typing import Any, Iterator

from .base import DataSource

logger = logging.getLogger(__name__)


class ImageFolderSource(DataSource):
    """Each immediate subdirectory of `root` is a label; each matching file inside it is a record.

    Yields {"Location": absolute path, "Label": subdirectory name}. Directories and files are
    visited in sorted order so two passes over the same tree yield identical sequences.
    Image decoding is left to the LoadImages transform.
    """

    name = "image_folder"
    kinds = {"Location": "text", "Label": "text"}

    def __init__(self, root: str | Path, pattern: str = "*.jpg") -> None:
        self.root = Path(root)
        self.pattern = pattern

    @property
    def columns(self) -> list[str]:
        return ["Location", "Label"]

    def _check_root(self) -> None:
        if not self.root.exists():
            raise FileNotFoundError(f"Image folder not found: {self.root}")
        if not self.root.is_dir():
            raise NotADirectoryError(f"Image root is not a directory: {self.root}")

    def __iter__(self) -> Iterator[dict[str, Any]]:
        self._check_root()
        label_dirs = sorted(p for p in self.root.iterdir() if p.is_dir())
        for label_dir in label_dirs:
            label = label_dir.name
            files = sorted(f for f in label_dir.glob(self.pattern) if f.is_file())
            logger.debug("ImageFolderSource: %d files for label %r", len(files), label)
            for f in files:
                yield {"Location": str(f.resolve()), "Label": label}

    def load(self):
        self._check_root()
        dataset = super().load()
        logger.info("Loaded %d images from %s", len(dataset), self.root)
        return dataset
