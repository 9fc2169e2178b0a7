# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import asdict

import pandas as pd
from sklearn.metrics import confusion_matrix

from ..config import DECISION_THRESHOLD, SpamFilterConfig
from ..files import write_json_atomic
from ..inference.predictor import SpamPredictor
from ..schemas import ClassificationResult, LabeledExample, Metrics, ScoredRecord
from ..scoring import decision_for
from ..training.dataset import gold_label_from_filename, read_email_folder
from .history import MetricsHistory

logger = logging.getLogger(__name__)


def _ratio(num: int | float, den: int | float) -> float:
    return float(num) / float(den) if den else 0.0


def metrics_from_counts(tp: int, tn: int, fp: int, fn: int, *, skipped: int = 0) -> Metrics:
    precision = _ratio(tp, tp + fp)
    recall = _ratio(tp, tp + fn)
    f1 = _ratio(2 * precision * recall, precision + recall)
    total = tp + tn + fp + fn
    return Metrics(
        tp=tp,
        tn=tn,
        fp=fp,
        fn=fn,
        precision=precision,
        recall=recall,
        f1=f1,
        accuracy=_ratio(tp + tn, total),
        evaluated=total,
        skipped=skipped,
    )


def evaluate(records: Sequence[ScoredRecord], gold_label_of: Callable[[str], int | None]) -> Metrics:
    """Confusion-matrix metrics with ham (label 1) as the positive class.

    Records whose gold label resolves to ``None`` are left out of every count.
    """
    frame = pd.DataFrame(
        [{"id": record.id, "score": float(record.score), "gold": gold_label_of(record.id)} for record in records],
        columns=["id", "score", "gold"],
    )
    eligible = frame.dropna(subset=["gold"])
    skipped = len(frame) - len(eligible)
    if eligible.empty:
        return metrics_from_counts(0, 0, 0, 0, skipped=skipped)

    y_true = eligible["gold"].astype(int)
    y_pred = (eligible["score"] >= DECISION_THRESHOLD).astype(int)
    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
    return metrics_from_counts(int(tp), int(tn), int(fp), int(fn), skipped=skipped)


def evaluate_dataset(predictor: SpamPredictor, examples: Sequence[LabeledExample], *, source: str = "test") -> Metrics:
    records: list[ScoredRecord] = []
    gold: dict[str, int] = {}
    for index, example in enumerate(examples):
        record_id = f"{source}:{index}"
        records.append(ScoredRecord(id=record_id, score=predictor.predict(example.text, item=record_id)))
        gold[record_id] = example.label
    return evaluate(records, gold.get)


def classify_folder(config: SpamFilterConfig, predictor: SpamPredictor) -> tuple[list[ClassificationResult], Metrics]:
    results: list[ClassificationResult] = []
    for name, text in read_email_folder(config.emails_dir):
        score = predictor.predict(text, item=name)
        results.append(
            ClassificationResult(
                email=name,
                ham_score=score,
                recommendation=decision_for(score),
                gold_label=gold_label_from_filename(name),
            )
        )
        logger.info("Classified %s -> %s (ham_score=%.4f)", name, decision_for(score), score)

    write_json_atomic(config.results_path, [asdict(result) for result in results])
    metrics = evaluate([ScoredRecord(id=result.email, score=result.ham_score) for result in results], gold_label_from_filename)
    if metrics.skipped:
        logger.warning("%d email(s) have no ham/spam prefix and were left out of the metrics", metrics.skipped)
    MetricsHistory(config.metrics_path).append(metrics, source="classify", emails_dir=str(config.emails_dir))
    return results, metrics
