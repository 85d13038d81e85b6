"""Console reports and on-disk run snapshots."""

from .console import (
    format_binary_report,
    format_multiclass_report,
    format_metrics_report,
    format_prediction_line,
    format_location_line,
)
from .snapshot import RunReporter, save_metrics_json

__all__ = [
    "format_binary_report",
    "format_multiclass_report",
    "format_metrics_report",
    "format_prediction_line",
    "format_location_line",
    "RunReporter",
    "save_metrics_json",
]
