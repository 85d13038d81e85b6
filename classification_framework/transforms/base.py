"""Base class for transforms. Every step maps named input columns to named output columns."""

from abc import ABC, abstractmethod
from typing import Any

from classification_framework.datasets import Dataset
from classification_framework.exceptions import NotFittedError, SchemaMismatchError


class TransformBase(ABC):
    """Abstract base for one pipeline step. Steps can be stacked in a TransformChain.

    `input_columns` are required when fitting; `apply_input_columns` are required when applying
    a fitted step (estimators, for example, no longer need the label column at apply time).
    """

    name: str = "base"
    requires_fit: bool = False

    def __init__(self, output_column: str, input_column: str | None = None, **kwargs: Any) -> None:
        self.output_column = output_column
        self.input_column = input_column if input_column is not None else output_column
        self.params = kwargs
        self._fitted = False

    @property
    def input_columns(self) -> list[str]:
        return [self.input_column]

    @property
    def apply_input_columns(self) -> list[str]:
        return self.input_columns

    @property
    def output_kinds(self) -> dict[str, str]:
        """Output column name -> column kind."""
        return {self.output_column: "object"}

    @property
    def output_columns(self) -> list[str]:
        return list(self.output_kinds)

    @property
    def is_fitted(self) -> bool:
        return self._fitted or not self.requires_fit

    def fit(self, dataset: Dataset) -> "TransformBase":
        """Learn parameters from training data. Stateless steps only validate the schema."""
        self.check_columns(dataset, self.input_columns)
        self._fitted = True
        return self

    @abstractmethod
    def transform(self, dataset: Dataset) -> Dataset:
        """Return a new dataset with this step's output columns added."""

    def fit_transform(self, dataset: Dataset) -> Dataset:
        """Fit and transform."""
        self.fit(dataset)
        return self.transform(dataset)

    def check_columns(self, dataset: Dataset, columns: list[str]) -> None:
        for column in columns:
            if column not in dataset:
                raise SchemaMismatchError(self.describe(), column, dataset.column_names)

    def check_fitted(self) -> None:
        if not self.is_fitted:
            raise NotFittedError(f"{self.describe()} must be fitted before transform()")

    def describe(self) -> str:
        return f"{self.name}({self.input_column} -> {self.output_column})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(output_column={self.output_column!r}, "
            f"input_column={self.input_column!r}, params={self.params})"
        )
