# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence
from pathlib import Path

from .config import SpamFilterConfig
from .console import MLConsole, configure_logging
from .errors import SpamFilterError
from .evaluation.evaluate import classify_folder, evaluate_dataset
from .evaluation.history import MetricsHistory
from .inference.aggregate import run_aggregation
from .inference.predictor import load_predictor
from .providers import EmbeddingProvider, ReasoningProvider, build_embedding_provider, build_reasoning_provider
from .training.dataset import load_dataset
from .training.trainer import Trainer

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="spamfilterai", description="Spam/ham classifier over text embeddings.")
    parser.add_argument("--logs-dir", type=Path, default=None, help="Output folder for model, results and metrics")
    parser.add_argument("--ollama-url", default=None, help="Base URL of the Ollama server")
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO)")
    parser.add_argument("--no-banner", action="store_true", help="Skip the start-up banner")
    sub = parser.add_subparsers(dest="command", required=True)

    train = sub.add_parser("train", help="Train the logistic-regression model")
    train.add_argument("--train", type=Path, default=None, help="Training JSONL (default: data/train.jsonl)")
    train.add_argument("--val", type=Path, default=None, help="Validation JSONL (default: data/val.jsonl)")
    train.add_argument("--epochs", type=int, default=None, help="Number of epochs (default: 20)")
    train.add_argument("--lr", type=float, default=None, help="Learning rate (default: 0.05)")
    train.add_argument("--seed", type=int, default=None, help="Seed for weight initialisation")
    train.add_argument("--shuffle", action="store_true", default=None, help="Shuffle training order every epoch")

    evaluate = sub.add_parser("evaluate", help="Score a labelled JSONL dataset")
    evaluate.add_argument("--test", type=Path, default=None, help="Test JSONL (default: data/test.jsonl)")

    classify = sub.add_parser("classify", help="Classify every .txt email in a folder")
    classify.add_argument("--emails", type=Path, default=None, help="Emails folder (default: emails)")

    aggregate = sub.add_parser("aggregate", help="Majority vote over N predictions per email")
    aggregate.add_argument("--emails", type=Path, default=None, help="Emails folder (default: emails)")
    aggregate.add_argument("-n", "--samples", type=int, default=None, help="Predictions per email (default: 5)")

    run_all = sub.add_parser("run-all", help="Train, evaluate, classify and aggregate in sequence")
    run_all.add_argument("-n", "--samples", type=int, default=None, help="Predictions per email (default: 5)")

    sub.add_parser("history", help="Show the cumulative metrics history")
    return parser.parse_args(argv)


def _config_from_args(args: argparse.Namespace, base: SpamFilterConfig) -> SpamFilterConfig:
    return base.with_overrides(
        logs_dir=args.logs_dir,
        ollama_url=args.ollama_url,
        log_level=args.log_level.upper() if args.log_level else None,
        epochs=getattr(args, "epochs", None),
        learning_rate=getattr(args, "lr", None),
        seed=getattr(args, "seed", None),
        shuffle=getattr(args, "shuffle", None),
        emails_dir=getattr(args, "emails", None),
        aggregate_samples=getattr(args, "samples", None),
    )


class _Runner:
    def __init__(
        self,
        config: SpamFilterConfig,
        console: MLConsole,
        embedder: EmbeddingProvider | None,
        reasoner: ReasoningProvider | None,
    ) -> None:
        self.config = config
        self.console = console
        self._embedder = embedder
        self._reasoner = reasoner

    @property
    def embedder(self) -> EmbeddingProvider:
        if self._embedder is None:
            self._embedder = build_embedding_provider(self.config)
        return self._embedder

    @property
    def reasoner(self) -> ReasoningProvider:
        if self._reasoner is None:
            self._reasoner = build_reasoning_provider(self.config)
        return self._reasoner

    def train(self, train_path: Path | None = None, val_path: Path | None = None) -> None:
        train_path = train_path or self.config.train_path
        val_path = val_path or self.config.val_path
        outcome = Trainer(self.config, self.embedder).train_and_export(train_path, val_path)
        counts = outcome["counts"]
        self.console.info(f"Trained on {counts['total']} examples (ham={counts['ham']}, spam={counts['spam']})")
        self.console.epochs_table(outcome["model"].history)
        self.console.success(f"Model saved to {outcome['paths']['model']}")

    def evaluate(self, test_path: Path | None = None) -> None:
        test_path = test_path or self.config.test_path
        predictor = load_predictor(self.config, self.embedder)
        metrics = evaluate_dataset(predictor, load_dataset(test_path), source=test_path.name)
        MetricsHistory(self.config.metrics_path).append(metrics, source="evaluate", dataset=str(test_path))
        self.console.metrics_table(metrics.to_dict(), title=f"Test metrics ({test_path.name})")
        self.console.success(f"Test accuracy = {metrics.accuracy:.4f}")

    def classify(self) -> None:
        predictor = load_predictor(self.config, self.embedder)
        results, metrics = classify_folder(self.config, predictor)
        self.console.decisions_table(
            [{"email": r.email, "decision": r.recommendation, "detail": f"ham_score={r.ham_score:.4f}"} for r in results],
            title="Classification",
        )
        self.console.metrics_table(metrics.to_dict(), title="Classification metrics")
        self.console.success(f"Results saved to {self.config.results_path}")

    def aggregate(self) -> None:
        predictor = load_predictor(self.config, self.embedder)
        results = run_aggregation(self.config, predictor, self.reasoner, self.config.aggregate_samples)
        self.console.decisions_table(
            [{"email": row["email"], "decision": row["final"], "detail": row["reasoning"]} for row in results],
            title=f"Aggregation ({self.config.aggregate_samples} samples)",
        )
        self.console.success(f"Aggregation saved to {self.config.aggregation_path}")

    def history(self) -> None:
        entries = MetricsHistory(self.config.metrics_path).read()
        if not entries:
            self.console.warn(f"No metrics recorded yet in {self.config.metrics_path}")
            return
        self.console.history_table(entries)


def main(
    argv: Sequence[str] | None = None,
    *,
    config: SpamFilterConfig | None = None,
    embedder: EmbeddingProvider | None = None,
    reasoner: ReasoningProvider | None = None,
    console: MLConsole | None = None,
) -> int:
    args = parse_args(argv)
    config = _config_from_args(args, config or SpamFilterConfig.from_env())
    console = console or MLConsole()
    configure_logging(config.log_level, console=console.console)
    if not args.no_banner:
        console.banner()

    runner = _Runner(config, console, embedder, reasoner)
    try:
        if args.command == "train":
            runner.train(args.train, args.val)
        elif args.command == "evaluate":
            runner.evaluate(args.test)
        elif args.command == "classify":
            runner.classify()
        elif args.command == "aggregate":
            runner.aggregate()
        elif args.command == "run-all":
            for title, step in (
                ("TRAINING MODEL", runner.train),
                ("EVALUATING TRAINED MODEL", runner.evaluate),
                ("CLASSIFYING EMAILS", runner.classify),
                (f"AGGREGATION MODE ({config.aggregate_samples} SAMPLES)", runner.aggregate),
            ):
                console.info(f"=== {title} ===")
                step()
            console.success("All tasks completed")
        elif args.command == "history":
            runner.history()
    except SpamFilterError as exc:
        logger.debug("Run aborted", exc_info=True)
        console.error(str(exc))
        return 1
    except ValueError as exc:
        console.error(str(exc))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
