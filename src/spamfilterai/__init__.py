# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
"""Spam filter package: embedding-based logistic regression with majority-vote aggregation."""

from .config import DECISION_THRESHOLD, SpamFilterConfig
from .errors import (
    DataFormatError,
    DimensionMismatchError,
    EmbeddingError,
    NonFiniteScoreError,
    ProviderError,
    ReasoningError,
    SpamFilterError,
)
from .evaluation.evaluate import evaluate
from .inference.aggregate import FALLBACK_REASONING, aggregate, majority_vote
from .inference.predictor import SpamPredictor, load_predictor, predict
from .schemas import AggregationResult, EpochMetric, LabeledExample, Metrics, Model, ScoredRecord
from .scoring import sigmoid
from .training.store import ModelStore
from .training.trainer import Trainer, train

__all__ = [
    "DECISION_THRESHOLD",
    "FALLBACK_REASONING",
    "AggregationResult",
    "DataFormatError",
    "DimensionMismatchError",
    "EmbeddingError",
    "EpochMetric",
    "LabeledExample",
    "Metrics",
    "Model",
    "ModelStore",
    "NonFiniteScoreError",
    "ProviderError",
    "ReasoningError",
    "ScoredRecord",
    "SpamFilterConfig",
    "SpamFilterError",
    "SpamPredictor",
    "Trainer",
    "aggregate",
    "evaluate",
    "load_predictor",
    "majority_vote",
    "predict",
    "sigmoid",
    "train",
]
