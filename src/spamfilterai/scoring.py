# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from .config import DECISION_THRESHOLD
from .errors import DimensionMismatchError, NonFiniteScoreError
from .schemas import DISCARD, FORWARD, HAM, SPAM


def sigmoid(z: float) -> float:
    """Logistic function, stable for large magnitudes of ``z``."""
    if math.isnan(z):
        raise NonFiniteScoreError("linear score is NaN")
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    exp_z = math.exp(z)
    return exp_z / (1.0 + exp_z)


def as_vector(values: Sequence[float], *, expected: int | None = None, item: str | None = None) -> np.ndarray:
    vector = np.asarray(values, dtype=np.float64)
    if vector.ndim != 1:
        raise DimensionMismatchError(expected or 0, int(vector.size), item=item)
    if expected is not None and vector.shape[0] != expected:
        raise DimensionMismatchError(expected, int(vector.shape[0]), item=item)
    return vector


def linear_score(weights: np.ndarray, bias: float, x: np.ndarray) -> float:
    z = float(np.dot(weights, x)) + bias
    if math.isnan(z):
        raise NonFiniteScoreError("linear score is NaN")
    return z


def predicted_label(score: float) -> int:
    return HAM if score >= DECISION_THRESHOLD else SPAM


def decision_for(score: float) -> str:
    return FORWARD if score >= DECISION_THRESHOLD else DISCARD
