"""Utility functions and helpers for the classification framework."""

from .config_loader import load_config, merge_overrides, DEFAULT_CONFIG_PATH
from .context import RunContext
from .splits import Split, train_test_split, k_fold_splits, row_train_test_split, k_fold_indices, compute_test_size

__all__ = [
    "load_config",
    "merge_overrides",
    "DEFAULT_CONFIG_PATH",
    "RunContext",
    "Split",
    "train_test_split",
    "k_fold_splits",
    "row_train_test_split",
    "k_fold_indices",
    "compute_test_size",
]
