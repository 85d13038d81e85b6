"""Errors raised by the classification pipeline. All of them abort the current run."""


class PipelineError(Exception):
    """Base class for pipeline failures."""


class SchemaMismatchError(PipelineError):
    """Raised when a step needs a column that no earlier step (or the input) provides."""

    def __init__(self, step: str, column: str, available: list[str] | None = None) -> None:
        self.step = step
        self.column = column
        self.available = list(available or [])
        msg = f"Step '{step}' requires column '{column}' which is not available"
        if available is not None:
            msg += f" (available: {self.available})"
        super().__init__(msg)


class InsufficientDataError(PipelineError):
    """Raised when fitting is attempted on data that cannot produce a usable model."""


class NotFittedError(PipelineError, RuntimeError):
    """Raised when a fittable step is applied before fit()."""


class InvalidArgumentError(PipelineError, ValueError):
    """Raised for out-of-range arguments such as a split fraction outside (0, 1)."""


class DataFormatError(PipelineError, ValueError):
    """Raised when a data source line or file cannot be parsed."""
