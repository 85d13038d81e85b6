"""Programmatic sentiment example: TSV -> split -> featurize + logistic regression -> evaluate -> predict.

Optionally cross-validates the same chain before the held-out evaluation.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from classification_framework.datasets import TextFileSource
from classification_framework.evaluation import cross_validate, evaluate, mean_metric
from classification_framework.pipelines import build_sentiment_chain
from classification_framework.prediction import predict
from classification_framework.reporting import format_binary_report, format_prediction_line
from classification_framework.utils import RunContext, train_test_split


def run_sentiment(data_path: Path, folds: int, sentences: list[str]) -> None:
    ctx = RunContext.from_file()
    ctx.seed_everything()
    dataset = TextFileSource(data_path).load()
    chain = build_sentiment_chain(ctx.config)

    if folds > 1:
        results = cross_validate(chain, dataset, n_folds=folds, seed=ctx.seed)
        print(f"{folds}-fold accuracy: {mean_metric(results, 'accuracy'):.3f}  auc: {mean_metric(results, 'auc'):.3f}")

    train, test = train_test_split(dataset, test_fraction=ctx.test_fraction, seed=ctx.seed)
    model = chain.fit(train)
    print(format_binary_report(evaluate(model, test), "sentiment"))
    for r in predict(model, [{"SentimentText": s} for s in sentences]):
        print("Sentiment: " + format_prediction_line(r, "SentimentText"))


def main() -> None:
    parser = argparse.ArgumentParser(description="Sentiment analysis example")
    parser.add_argument("--data", default="./data/amazon_cells_labelled.txt", help="Tab-separated text<TAB>0|1 file")
    parser.add_argument("--folds", type=int, default=0, help="Cross-validation folds (0 = skip)")
    parser.add_argument("sentences", nargs="*", default=["This was a horrible meal", "I hate this", "I love this spaghetti"])
    args = parser.parse_args()
    run_sentiment(Path(args.data), args.folds, args.sentences)


if __name__ == "__main__":
    main()
