# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
from __future__ import annotations

from dataclasses import asdict, dataclass

from .config import DECISION_THRESHOLD

SPAM = 0
HAM = 1
FORWARD = "forward"
DISCARD = "discard"


@dataclass(frozen=True, slots=True)
class LabeledExample:
    text: str
    label: int


@dataclass(frozen=True, slots=True)
class EpochMetric:
    epoch: int
    accuracy: float


@dataclass(frozen=True, slots=True)
class Model:
    weights: tuple[float, ...]
    bias: float
    history: tuple[EpochMetric, ...] = ()

    @property
    def dimension(self) -> int:
        return len(self.weights)


@dataclass(frozen=True, slots=True)
class ScoredRecord:
    id: str
    score: float


@dataclass(frozen=True, slots=True)
class AggregationResult:
    scores: tuple[float, ...]
    final_decision: str
    reasoning: str

    @property
    def ham_votes(self) -> int:
        return sum(1 for score in self.scores if score >= DECISION_THRESHOLD)


@dataclass(slots=True)
class Metrics:
    tp: int = 0
    tn: int = 0
    fp: int = 0
    fn: int = 0
    precision: float = 0.0
    recall: float = 0.0
    f1: float = 0.0
    accuracy: float = 0.0
    evaluated: int = 0
    skipped: int = 0

    def to_dict(self) -> dict[str, float | int]:
        return asdict(self)


@dataclass(slots=True)
class ClassificationResult:
    email: str
    ham_score: float
    recommendation: str
    gold_label: int | None = None
