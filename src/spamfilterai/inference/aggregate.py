# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
"""N-sample majority vote with a single after-the-fact explanation."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from joblib import Parallel, delayed

from ..config import DECISION_THRESHOLD, SpamFilterConfig
from ..files import write_json_atomic
from ..providers import ReasoningProvider
from ..schemas import DISCARD, FORWARD, AggregationResult
from ..training.dataset import read_email_folder
from .predictor import SpamPredictor

logger = logging.getLogger(__name__)

FALLBACK_REASONING = "No reasoning provided."


def majority_vote(scores: Sequence[float]) -> str:
    """Strict majority of ham votes forwards; an exact tie discards."""
    if not scores:
        raise ValueError("majority vote needs at least one score")
    ham_votes = sum(1 for score in scores if score >= DECISION_THRESHOLD)
    return FORWARD if ham_votes > len(scores) / 2 else DISCARD


def explain_decision(reasoner: ReasoningProvider, text: str, decision: str) -> str:
    try:
        reasoning = reasoner.explain(text, decision)
    except Exception as exc:
        logger.warning("Reasoning provider failed (%s: %s), using fallback text", type(exc).__name__, exc)
        return FALLBACK_REASONING
    if not isinstance(reasoning, str) or not reasoning.strip():
        logger.warning("Reasoning provider returned an empty explanation, using fallback text")
        return FALLBACK_REASONING
    return reasoning.strip()


def aggregate(
    predictor: SpamPredictor,
    text: str,
    n: int,
    reasoner: ReasoningProvider,
    *,
    workers: int = 1,
    item: str | None = None,
) -> AggregationResult:
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    if workers > 1 and n > 1:
        scores = Parallel(n_jobs=workers, prefer="threads")(delayed(predictor.predict)(text, item=item) for _ in range(n))
    else:
        scores = [predictor.predict(text, item=item) for _ in range(n)]
    decision = majority_vote(scores)
    reasoning = explain_decision(reasoner, text, decision)
    return AggregationResult(scores=tuple(float(score) for score in scores), final_decision=decision, reasoning=reasoning)


def run_aggregation(
    config: SpamFilterConfig,
    predictor: SpamPredictor,
    reasoner: ReasoningProvider,
    n: int | None = None,
) -> list[dict[str, Any]]:
    samples = n if n is not None else config.aggregate_samples
    results: list[dict[str, Any]] = []
    for name, text in read_email_folder(config.emails_dir):
        outcome = aggregate(predictor, text, samples, reasoner, workers=config.embed_workers, item=name)
        results.append(
            {
                "email": name,
                "final": outcome.final_decision,
                "reasoning": outcome.reasoning,
                "scores": list(outcome.scores),
            }
        )
        logger.info("Aggregated %s -> %s (%d/%d ham votes)", name, outcome.final_decision, outcome.ham_votes, samples)
    write_json_atomic(config.aggregation_path, results)
    return results
