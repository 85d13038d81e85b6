"""Unit tests for row-level train/test splits and k-fold partitions."""

import numpy as np
import pytest

from classification_framework.datasets import Dataset
from classification_framework.exceptions import InvalidArgumentError
from classification_framework.utils.splits import (
    compute_test_size,
    k_fold_indices,
    k_fold_splits,
    row_train_test_split,
    train_test_split,
)


def _ids(n):
    return Dataset({"Id": np.arange(n), "Label": np.arange(n) % 2 == 0})


def test_row_train_test_split():
    train_idx, test_idx = row_train_test_split(100, test_fraction=0.2, shuffle=True, seed=42)
    assert len(train_idx) == 80
    assert len(test_idx) == 20
    assert len(np.unique(np.concatenate([train_idx, test_idx]))) == 100
    assert len(set(train_idx) & set(test_idx)) == 0


def test_row_train_test_split_no_shuffle():
    train_idx, test_idx = row_train_test_split(10, test_fraction=0.3, shuffle=False)
    np.testing.assert_array_equal(test_idx, np.arange(3))
    np.testing.assert_array_equal(train_idx, np.arange(3, 10))


@pytest.mark.parametrize("n_rows,fraction", [(10, 0.2), (7, 0.5), (13, 0.33), (250, 0.2), (3, 0.9)])
def test_split_is_a_partition(n_rows, fraction):
    split = train_test_split(_ids(n_rows), test_fraction=fraction, seed=7)
    train_ids = set(split.train["Id"].tolist())
    test_ids = set(split.test["Id"].tolist())
    assert train_ids.isdisjoint(test_ids)
    assert train_ids | test_ids == set(range(n_rows))
    assert abs(len(split.test) - fraction * n_rows) <= 1


def test_two_rows_half_fraction():
    train, test = train_test_split(_ids(2), test_fraction=0.5, seed=1)
    assert len(train) == 1
    assert len(test) == 1


def test_test_size_rounding_and_clamp():
    assert compute_test_size(10, 0.25) == 3
    assert compute_test_size(10, 0.01) == 1
    assert compute_test_size(10, 0.99) == 9
    assert compute_test_size(1, 0.5) == 1


@pytest.mark.parametrize("fraction", [0.0, 1.0, -0.1, 1.5])
def test_invalid_fraction(fraction):
    with pytest.raises(InvalidArgumentError):
        train_test_split(_ids(10), test_fraction=fraction)


def test_invalid_fraction_is_value_error():
    with pytest.raises(ValueError):
        compute_test_size(10, 2.0)


def test_seed_reproducible():
    a = train_test_split(_ids(50), test_fraction=0.2, seed=123)
    b = train_test_split(_ids(50), test_fraction=0.2, seed=123)
    c = train_test_split(_ids(50), test_fraction=0.2, seed=124)
    np.testing.assert_array_equal(a.test_indices, b.test_indices)
    assert not np.array_equal(a.test_indices, c.test_indices)


def test_split_keeps_schema():
    data = _ids(6)
    split = train_test_split(data, test_fraction=0.5, seed=0)
    assert dict(split.train.schema) == dict(data.schema)
    assert dict(split.test.schema) == dict(data.schema)


def test_k_fold_indices_cover_every_row_once():
    folds = k_fold_indices(23, n_folds=5, seed=0)
    assert len(folds) == 5
    val = np.concatenate([v for _, v in folds])
    assert sorted(val.tolist()) == list(range(23))
    for train_idx, val_idx in folds:
        assert len(set(train_idx) & set(val_idx)) == 0
        assert len(train_idx) + len(val_idx) == 23


def test_k_fold_splits_datasets():
    splits = k_fold_splits(_ids(10), n_folds=5, seed=0)
    assert [len(s.test) for s in splits] == [2] * 5
    assert all(len(s.train) == 8 for s in splits)


def test_k_fold_invalid():
    with pytest.raises(InvalidArgumentError):
        k_fold_indices(10, n_folds=1)
    with pytest.raises(InvalidArgumentError):
        k_fold_indices(3, n_folds=5)
