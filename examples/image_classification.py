"""Programmatic image example: label folders -> pretrained CNN features -> maximum entropy -> save, reload, validate."""

from __future__ import annotations

import argparse
import time
from pathlib import Path

from classification_framework.datasets import ImageFolderSource
from classification_framework.evaluation import evaluate
from classification_framework.pipelines import FittedChain, build_image_chain
from classification_framework.prediction import predict
from classification_framework.reporting import format_location_line, format_multiclass_report
from classification_framework.utils import RunContext, merge_overrides


def run_image(train_dir: Path, validate_dir: Path, model_path: Path, backbone: str) -> None:
    ctx = RunContext.from_file()
    ctx.config = merge_overrides(ctx.config, {"image": {"backbone": backbone}})
    ctx.seed_everything()

    start = time.perf_counter()
    model = build_image_chain(ctx.config).fit(ImageFolderSource(train_dir).load())
    print(f"Took to train {time.perf_counter() - start:.1f}s")
    model.save(model_path)

    model = FittedChain.load(model_path)
    validation = ImageFolderSource(validate_dir).load()
    for r in predict(model, validation):
        print(format_location_line(r))
    print(format_multiclass_report(evaluate(model, validation), "image"))


def main() -> None:
    parser = argparse.ArgumentParser(description="Image classification example")
    parser.add_argument("--train", default="./data/Train", help="Training folder (<root>/<label>/*.jpg)")
    parser.add_argument("--validate", default="./data/Validate", help="Validation folder")
    parser.add_argument("--model", default="./data/model.pkl", help="Where to save the fitted chain")
    parser.add_argument("--backbone", default="googlenet", help="torchvision model name")
    args = parser.parse_args()
    run_image(Path(args.train), Path(args.validate), Path(args.model), args.backbone)


if __name__ == "__main__":
    main()
