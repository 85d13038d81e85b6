"""TransformChain: ordered transforms ending (usually) in an estimator, and its fitted counterpart.

Schema is checked when the chain is built: each step's input columns must be produced by the
chain input or an earlier step. Fitting is sequential: step i is fitted on the output of steps
0..i-1 applied to the training data. Fitted parameters are frozen in the FittedChain and reused
unchanged for evaluation and prediction.
"""

from __future__ import annotations

import copy
import logging
import pickle
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from classification_framework.datasets import Dataset
from classification_framework.estimators import EstimatorBase
from classification_framework.exceptions import InsufficientDataError, PipelineError, SchemaMismatchError
from classification_framework.transforms import TransformBase

logger = logging.getLogger(__name__)


def _step_label(index: int, step: TransformBase) -> str:
    return f"step {index} {step.describe()}"


class TransformChain:
    """Unfitted chain of transforms. Immutable: append() returns a new chain."""

    def __init__(
        self,
        steps: Iterable[TransformBase],
        input_columns: Iterable[str],
        name: str = "chain",
    ) -> None:
        self.name = name
        self._steps = tuple(steps)
        self.input_columns = list(input_columns)
        self._columns = self._validate()

    def _validate(self) -> list[str]:
        available = list(self.input_columns)
        for i, step in enumerate(self._steps):
            for column in step.input_columns:
                if column not in available:
                    raise SchemaMismatchError(_step_label(i, step), column, available)
            for column in step.output_columns:
                if column not in available:
                    available.append(column)
        return available

    @property
    def steps(self) -> tuple[TransformBase, ...]:
        return self._steps

    @property
    def output_columns(self) -> list[str]:
        """All columns available after the last step."""
        return list(self._columns)

    @property
    def estimator(self) -> EstimatorBase | None:
        for step in reversed(self._steps):
            if isinstance(step, EstimatorBase):
                return step
        return None

    def append(self, step: TransformBase) -> "TransformChain":
        """Return a new chain with `step` added at the end (validated immediately)."""
        return TransformChain(self._steps + (step,), self.input_columns, name=self.name)

    def fit(self, dataset: Dataset) -> "FittedChain":
        """Fit every step in order on the training dataset. The chain itself stays unfitted."""
        if len(dataset) == 0:
            raise InsufficientDataError(f"Chain '{self.name}': cannot fit on an empty training dataset")
        for column in self.input_columns:
            if column not in dataset:
                raise SchemaMismatchError(f"chain '{self.name}' input", column, dataset.column_names)
        steps = copy.deepcopy(self._steps)
        data = dataset
        total = time.perf_counter()
        for i, step in enumerate(steps):
            start = time.perf_counter()
            step.fit(data)
            if i < len(steps) - 1:
                data = step.transform(data)
            logger.info("Step %d %s fit completed in %.3f ms", i, step.name, (time.perf_counter() - start) * 1e3)
        logger.info(
            "Chain '%s' fitted on %d rows in %.1f s", self.name, len(dataset), time.perf_counter() - total
        )
        return FittedChain(steps, self.input_columns, name=self.name)

    def __len__(self) -> int:
        return len(self._steps)

    def __repr__(self) -> str:
        return f"TransformChain(name={self.name!r}, steps={[s.name for s in self._steps]})"


class FittedChain:
    """Fitted chain (the model). apply() is deterministic and never mutates its input."""

    def __init__(self, steps: Iterable[TransformBase], input_columns: Iterable[str], name: str = "chain") -> None:
        self.name = name
        self._steps = tuple(steps)
        self.input_columns = list(input_columns)
        for i, step in enumerate(self._steps):
            if not step.is_fitted:
                raise PipelineError(f"{_step_label(i, step)} is not fitted")

    @property
    def steps(self) -> tuple[TransformBase, ...]:
        return self._steps

    @property
    def estimator(self) -> EstimatorBase | None:
        for step in reversed(self._steps):
            if isinstance(step, EstimatorBase):
                return step
        return None

    def check_schema(self, dataset: Dataset) -> None:
        """Verify `dataset` has every column the fitted steps need at apply time."""
        available = set(dataset.column_names)
        for i, step in enumerate(self._steps):
            for column in step.apply_input_columns:
                if column not in available:
                    raise SchemaMismatchError(_step_label(i, step), column, sorted(available))
            if step.apply_input_columns or all(c in available for c in step.input_columns):
                available.update(step.output_columns)

    def apply(self, dataset: Dataset) -> Dataset:
        """Run every fitted step over `dataset` and return the augmented dataset."""
        self.check_schema(dataset)
        data = dataset
        for i, step in enumerate(self._steps):
            start = time.perf_counter()
            data = step.transform(data)
            logger.debug("Step %d %s transform completed in %.3f ms", i, step.name, (time.perf_counter() - start) * 1e3)
        return data

    transform = apply

    def save(self, path: str | Path) -> Path:
        """Write the fitted chain to a single archive file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        meta = {
            "name": self.name,
            "input_columns": self.input_columns,
            "steps": [s.name for s in self._steps],
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }
        with open(path, "wb") as f:
            pickle.dump({"chain": self, "meta": meta}, f, protocol=pickle.HIGHEST_PROTOCOL)
        logger.info("Saved fitted chain '%s' to %s", self.name, path)
        return path

    @classmethod
    def load(cls, path: str | Path) -> "FittedChain":
        """Load a chain written by save(). No retraining happens."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"No model archive at {path}")
        with open(path, "rb") as f:
            data = pickle.load(f)
        chain = data.get("chain") if isinstance(data, dict) else None
        if not isinstance(chain, cls):
            raise PipelineError(f"{path} does not contain a fitted chain")
        logger.info("Loaded fitted chain '%s' from %s (saved %s)", chain.name, path, data.get("meta", {}).get("saved_at"))
        return chain

    def __repr__(self) -> str:
        return f"FittedChain(name={self.name!r}, steps={[s.name for s in self._steps]})"
