# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
from __future__ import annotations

import numpy as np

from ..config import SpamFilterConfig
from ..providers import EmbeddingProvider, build_embedding_provider, embed_item
from ..schemas import Model
from ..scoring import as_vector, decision_for, linear_score, sigmoid
from ..training.store import ModelStore


def predict(model: Model, text: str, embedder: EmbeddingProvider, *, item: str | None = None) -> float:
    return SpamPredictor(model, embedder).predict(text, item=item)


class SpamPredictor:
    """Scores text against a trained model; the returned value is P(ham)."""

    def __init__(self, model: Model, embedder: EmbeddingProvider) -> None:
        self.model = model
        self.embedder = embedder
        self._weights = np.asarray(model.weights, dtype=np.float64)
        self._weights.setflags(write=False)
        self._bias = float(model.bias)

    @property
    def dimension(self) -> int:
        return self.model.dimension

    def predict(self, text: str, *, item: str | None = None) -> float:
        x = as_vector(embed_item(self.embedder, text, item=item), expected=self.dimension, item=item)
        return sigmoid(linear_score(self._weights, self._bias, x))

    def decide(self, text: str, *, item: str | None = None) -> str:
        return decision_for(self.predict(text, item=item))


def load_predictor(config: SpamFilterConfig, embedder: EmbeddingProvider | None = None) -> SpamPredictor:
    model = ModelStore(config.model_path, config.metadata_path).load()
    return SpamPredictor(model, embedder if embedder is not None else build_embedding_provider(config))
