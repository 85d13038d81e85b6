"""
Per-run context: seed, config and results directory, built once and passed to every stage.
Replaces process-wide state; two contexts in one process never interfere.
"""

import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import numpy as np

from .config_loader import load_config

logger = logging.getLogger(__name__)


def _new_run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S") + "_" + uuid.uuid4().hex[:8]


@dataclass
class RunContext:
    """Explicit configuration/context object for one pipeline run."""

    config: dict[str, Any] = field(default_factory=dict)
    seed: int = 42
    run_id: str = field(default_factory=_new_run_id)

    @classmethod
    def from_config(cls, config: dict[str, Any], run_id: str | None = None) -> "RunContext":
        seed = int((config.get("experiment") or {}).get("seed", 42))
        ctx = cls(config=config, seed=seed)
        if run_id:
            ctx.run_id = run_id
        return ctx

    @classmethod
    def from_file(cls, config_path: str | Path | None = None) -> "RunContext":
        return cls.from_config(load_config(config_path))

    def section(self, name: str) -> dict[str, Any]:
        return dict(self.config.get(name) or {})

    @property
    def test_fraction(self) -> float:
        return float(self.section("split").get("test_fraction", 0.2))

    @property
    def results_dir(self) -> Path:
        return Path(self.section("logging").get("results_dir", "./results"))

    def rng(self) -> np.random.Generator:
        """A fresh generator seeded from this run's seed."""
        return np.random.default_rng(self.seed)

    def seed_everything(self) -> None:
        """Seed numpy, random and (when installed) torch for reproducible runs."""
        np.random.seed(self.seed)
        random.seed(self.seed)
        try:
            import torch
        except ImportError:
            logger.debug("torch not installed; skipping torch seeding")
            return
        torch.manual_seed(self.seed)
        if torch.cuda.is_available():
            torch.cuda.manual_seed_all(self.seed)
