"""
Row-level train/test splitting for datasets.
Every row lands in exactly one partition; fittable steps must only ever see the train side.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np

from classification_framework.datasets import Dataset
from classification_framework.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Split:
    """A (train, test) partition of one dataset."""

    train: Dataset
    test: Dataset
    train_indices: np.ndarray
    test_indices: np.ndarray

    def __iter__(self):
        yield self.train
        yield self.test


def compute_test_size(n_rows: int, test_fraction: float) -> int:
    """Number of test rows: nearest integer to f * n (halves round up), kept inside [1, n - 1] when n >= 2."""
    if not 0.0 < test_fraction < 1.0:
        raise InvalidArgumentError(f"test_fraction must be in (0, 1), got {test_fraction}")
    n_test = int(math.floor(test_fraction * n_rows + 0.5))
    if n_rows >= 2:
        n_test = max(1, min(n_test, n_rows - 1))
    return n_test


def row_train_test_split(
    n_rows: int,
    test_fraction: float = 0.2,
    shuffle: bool = True,
    seed: int | None = 42,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Split row positions. Returns train_indices, test_indices (each sorted by original order).
    With a fixed seed the partition is reproducible across runs.
    """
    n_test = compute_test_size(n_rows, test_fraction)
    indices = np.arange(n_rows)
    if shuffle:
        indices = np.random.default_rng(seed).permutation(indices)
    test_idx = np.sort(indices[:n_test])
    train_idx = np.sort(indices[n_test:])
    return train_idx, test_idx


def train_test_split(
    dataset: Dataset,
    test_fraction: float = 0.2,
    seed: int | None = 42,
    shuffle: bool = True,
) -> Split:
    """Partition `dataset` into train and test datasets by `test_fraction`."""
    train_idx, test_idx = row_train_test_split(len(dataset), test_fraction, shuffle, seed)
    logger.info(
        "Split %d rows -> train=%d, test=%d (test_fraction=%.3f, seed=%s)",
        len(dataset), len(train_idx), len(test_idx), test_fraction, seed,
    )
    return Split(
        train=dataset.take(train_idx),
        test=dataset.take(test_idx),
        train_indices=train_idx,
        test_indices=test_idx,
    )


def k_fold_indices(
    n_rows: int,
    n_folds: int = 5,
    shuffle: bool = True,
    seed: int | None = 42,
) -> list[tuple[np.ndarray, np.ndarray]]:
    """
    K-fold split at row level. Returns list of (train_indices, val_indices).
    Each row appears in exactly one validation fold.
    """
    if n_folds < 2:
        raise InvalidArgumentError(f"n_folds must be >= 2, got {n_folds}")
    if n_rows < n_folds:
        raise InvalidArgumentError(f"Cannot make {n_folds} folds from {n_rows} rows")
    from sklearn.model_selection import KFold

    kf = KFold(n_splits=n_folds, shuffle=shuffle, random_state=seed if shuffle else None)
    return [(train_idx, val_idx) for train_idx, val_idx in kf.split(np.arange(n_rows))]


def k_fold_splits(
    dataset: Dataset,
    n_folds: int = 5,
    seed: int | None = 42,
    shuffle: bool = True,
) -> list[Split]:
    """K-fold cross-validation partitions of `dataset`."""
    return [
        Split(
            train=dataset.take(train_idx),
            test=dataset.take(val_idx),
            train_indices=train_idx,
            test_indices=val_idx,
        )
        for train_idx, val_idx in k_fold_indices(len(dataset), n_folds, shuffle, seed)
    ]
