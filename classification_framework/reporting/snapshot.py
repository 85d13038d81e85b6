"""Run snapshots: per-chain folders with metrics JSON, confusion matrix plot and prediction CSV."""

import csv
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

import numpy as np

from classification_framework.prediction import PredictionResult

logger = logging.getLogger(__name__)


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    return value


class RunReporter:
    """Writes results/<run_id>/<chain_name>/ artifacts for one run."""

    def __init__(self, results_dir: str | Path = "./results", run_id: str | None = None) -> None:
        self.results_dir = Path(results_dir)
        self.run_id = run_id
        self.root = self.results_dir / run_id if run_id else self.results_dir
        self.root.mkdir(parents=True, exist_ok=True)

    def chain_dir(self, chain_name: str) -> Path:
        safe = chain_name.replace("/", "_").replace(" ", "_")
        d = self.root / safe
        d.mkdir(parents=True, exist_ok=True)
        return d

    def save_metrics_json(self, chain_name: str, metrics: Any) -> Path:
        path = self.chain_dir(chain_name) / "metrics.json"
        values = metrics.as_dict() if hasattr(metrics, "as_dict") else dict(metrics)
        payload = {
            "chain_name": chain_name,
            "run_id": self.run_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "metrics": _jsonable(values),
        }
        with open(path, "w") as f:
            json.dump(payload, f, indent=2)
        logger.info("Saved metrics to %s", path)
        return path

    def save_confusion_matrix(self, chain_name: str, confusion: Any, class_names: Iterable[Any]) -> Path:
        """Plot a precomputed confusion matrix (rows = true, columns = predicted)."""
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
        from sklearn.metrics import ConfusionMatrixDisplay

        path = self.chain_dir(chain_name) / "confusion_matrix.png"
        cm = np.asarray(confusion, dtype=np.int64)
        fig, ax = plt.subplots(figsize=(6, 5))
        disp = ConfusionMatrixDisplay(confusion_matrix=cm, display_labels=[str(c) for c in class_names])
        disp.plot(ax=ax)
        fig.tight_layout()
        fig.savefig(path, dpi=100)
        plt.close(fig)
        return path

    def save_predictions_csv(self, chain_name: str, results: list[PredictionResult]) -> Path:
        path = self.chain_dir(chain_name) / "predictions.csv"
        if not results:
            path.write_text("predicted_label,probability\n")
            return path
        field_names = list(results[0].fields.keys())
        with open(path, "w", newline="") as f:
            w = csv.DictWriter(f, fieldnames=field_names + ["predicted_label", "probability"])
            w.writeheader()
            for r in results:
                row = {k: r.fields.get(k) for k in field_names}
                row["predicted_label"] = r.predicted_label
                row["probability"] = f"{r.probability:.6f}"
                w.writerow(row)
        logger.info("Saved %d predictions to %s", len(results), path)
        return path


def save_metrics_json(metrics: Any, results_dir: str | Path, name: str) -> Path:
    """Write one metrics.json under results_dir/name without creating a run folder."""
    return RunReporter(results_dir).save_metrics_json(name, metrics)
