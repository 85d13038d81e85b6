"""
Classification framework: main entry point.

Run from project root:
  python main.py sentiment
  python main.py image-train
  python main.py image-validate
  python main.py image            (train, save, reload, validate)

Flow: Seed & run ID -> Load dataset -> Split (seeded) -> Fit chain -> Evaluate -> Persist -> Predict.
"""

import argparse
import logging
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from classification_framework.datasets import ImageFolderSource, TextFileSource
from classification_framework.evaluation import evaluate
from classification_framework.exceptions import PipelineError
from classification_framework.pipelines import FittedChain, build_image_chain, build_sentiment_chain
from classification_framework.prediction import predict
from classification_framework.reporting import (
    RunReporter,
    format_location_line,
    format_metrics_report,
    format_prediction_line,
)
from classification_framework.utils import RunContext, load_config, train_test_split

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("main")


def _reporter(ctx: RunContext) -> RunReporter | None:
    if not ctx.section("logging").get("save_snapshots", True):
        return None
    return RunReporter(ctx.results_dir, run_id=ctx.run_id)


def run_sentiment(ctx: RunContext) -> None:
    """Load TSV, split, fit featurizer + logistic regression, evaluate, predict sample sentences."""
    cfg = ctx.section("sentiment")
    source = TextFileSource(
        cfg.get("data_path", "./data/amazon_cells_labelled.txt"),
        separator=cfg.get("separator", "\t"),
        has_header=bool(cfg.get("has_header", False)),
        columns=(cfg.get("text_column", "SentimentText"), cfg.get("label_column", "Label")),
    )
    dataset = source.load()
    split = train_test_split(
        dataset,
        test_fraction=ctx.test_fraction,
        seed=ctx.seed,
        shuffle=bool(ctx.section("split").get("shuffle", True)),
    )
    logger.info("Split: %d train / %d test", len(split.train), len(split.test))

    chain = build_sentiment_chain(ctx.config)
    print("=============== Create and Train the Model ===============")
    model = chain.fit(split.train)
    print("=============== End of training ===============")

    print("=============== Evaluating Model accuracy with Test data ===============")
    metrics = evaluate(model, split.test)
    print(format_metrics_report(metrics, "sentiment"))

    reporter = _reporter(ctx)
    if reporter is not None:
        reporter.save_metrics_json(model.name, metrics)

    text_col = cfg.get("text_column", "SentimentText")
    samples = cfg.get("samples") or []
    results = predict(model, [{text_col: s} for s in samples])
    print("=============== Predictions ===============")
    for r in results:
        print("Sentiment: " + format_prediction_line(r, text_col))
    print("=============== End of predictions ===============")
    if reporter is not None and results:
        reporter.save_predictions_csv(model.name, results)


def run_image_train(ctx: RunContext) -> Path:
    """Fit the image chain on the training folder and save it to image.model_path."""
    cfg = ctx.section("image")
    source = ImageFolderSource(cfg.get("train_folder", "./data/Train"), pattern=cfg.get("pattern", "*.jpg"))
    dataset = source.load()
    chain = build_image_chain(ctx.config)
    start = time.perf_counter()
    model = chain.fit(dataset)
    print(f"Took to train {time.perf_counter() - start:.1f}s")
    path = model.save(cfg.get("model_path", "./data/model.pkl"))
    print(f'Saved model to "{path}"')
    return path


def run_image_validate(ctx: RunContext) -> None:
    """Load the saved image chain, print one line per validation image, then multiclass metrics."""
    cfg = ctx.section("image")
    model = FittedChain.load(cfg.get("model_path", "./data/model.pkl"))
    source = ImageFolderSource(cfg.get("validate_folder", "./data/Validate"), pattern=cfg.get("pattern", "*.jpg"))
    dataset = source.load()

    for r in predict(model, dataset, batch_size=int(cfg.get("batch_size", 32))):
        print(format_location_line(r))

    metrics = evaluate(model, dataset, top_k=int(cfg.get("top_k", 5)))
    print(format_metrics_report(metrics, "image"))
    reporter = _reporter(ctx)
    if reporter is not None:
        reporter.save_metrics_json(model.name, metrics)
        reporter.save_confusion_matrix(model.name, metrics.confusion_matrix, metrics.class_names)


def main() -> None:
    parser = argparse.ArgumentParser(description="Supervised classification pipelines")
    parser.add_argument("command", choices=["sentiment", "image-train", "image-validate", "image"])
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--run-id", default=None, help="Run ID for the results folder (auto if not set)")
    parser.add_argument("--seed", type=int, default=None, help="Override experiment.seed")
    parser.add_argument("--test-fraction", type=float, default=None, help="Override split.test_fraction")
    args = parser.parse_args()

    config_path = Path(args.config) if args.config else ROOT / "classification_framework" / "config.yaml"
    config = load_config(config_path)
    if args.seed is not None:
        config.setdefault("experiment", {})["seed"] = args.seed
    if args.test_fraction is not None:
        config.setdefault("split", {})["test_fraction"] = args.test_fraction

    level = str(config.get("logging", {}).get("level", "INFO")).upper()
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))

    ctx = RunContext.from_config(config, run_id=args.run_id)
    ctx.seed_everything()
    logger.info("Run %s (seed=%d, config=%s)", ctx.run_id, ctx.seed, config_path)

    try:
        if args.command == "sentiment":
            run_sentiment(ctx)
        elif args.command == "image-train":
            run_image_train(ctx)
        elif args.command == "image-validate":
            run_image_validate(ctx)
        else:
            run_image_train(ctx)
            run_image_validate(ctx)
    except (PipelineError, OSError) as e:
        logger.error("%s failed: %s", args.command, e)
        sys.exit(1)


if __name__ == "__main__":
    main()
