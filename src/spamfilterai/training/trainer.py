# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import numpy as np

from ..config import SpamFilterConfig
from ..errors import DataFormatError
from ..providers import EmbeddingProvider, embed_all
from ..schemas import EpochMetric, LabeledExample, Model
from ..scoring import as_vector, linear_score, predicted_label, sigmoid
from .dataset import label_counts, load_dataset
from .store import ModelStore

logger = logging.getLogger(__name__)


def _embed_matrix(
    embedder: EmbeddingProvider,
    examples: Sequence[LabeledExample],
    *,
    expected: int | None,
    workers: int,
    split: str,
) -> list[np.ndarray]:
    raw = embed_all(embedder, [example.text for example in examples], workers=workers, label=f"{split} example")
    vectors: list[np.ndarray] = []
    for index, values in enumerate(raw):
        vector = as_vector(values, expected=expected, item=f"{split} example {index}")
        if expected is None:
            expected = int(vector.shape[0])
        vectors.append(vector)
    return vectors


def _validation_accuracy(
    weights: np.ndarray,
    bias: float,
    embedder: EmbeddingProvider,
    val_set: Sequence[LabeledExample],
    *,
    workers: int,
) -> float:
    if not val_set:
        return 0.0
    # Validation texts are re-embedded every epoch; see CachedEmbeddingProvider.
    vectors = _embed_matrix(embedder, val_set, expected=int(weights.shape[0]), workers=workers, split="validation")
    correct = 0
    for example, x in zip(val_set, vectors, strict=True):
        if predicted_label(sigmoid(linear_score(weights, bias, x))) == example.label:
            correct += 1
    return correct / len(val_set)


def train(
    train_set: Sequence[LabeledExample],
    val_set: Sequence[LabeledExample],
    epochs: int,
    *,
    embedder: EmbeddingProvider,
    learning_rate: float = 0.05,
    rng: np.random.Generator | None = None,
    init_scale: float = 0.005,
    shuffle: bool = False,
    workers: int = 1,
) -> Model:
    """Fit a logistic-regression boundary with per-example gradient descent.

    Updates are applied one example at a time in load order, so two runs with
    the same data, embedder and RNG seed produce identical weights. Nothing is
    persisted here; any embedding failure propagates before a model exists.
    """
    if not train_set:
        raise DataFormatError("training set is empty")
    if epochs < 1:
        raise ValueError(f"epochs must be >= 1, got {epochs}")
    rng = rng if rng is not None else np.random.default_rng()
    if not val_set:
        logger.warning("Validation set is empty, validation accuracy will be reported as 0")

    logger.info("Embedding %d training examples", len(train_set))
    train_x = _embed_matrix(embedder, train_set, expected=None, workers=workers, split="train")
    labels = [float(example.label) for example in train_set]
    dim = int(train_x[0].shape[0])

    weights = rng.uniform(-init_scale, init_scale, size=dim)
    bias = 0.0
    history: list[EpochMetric] = []

    for epoch in range(epochs):
        order = rng.permutation(len(train_x)) if shuffle else range(len(train_x))
        for index in order:
            x = train_x[index]
            error = sigmoid(linear_score(weights, bias, x)) - labels[index]
            weights -= learning_rate * error * x
            bias -= learning_rate * error

        accuracy = _validation_accuracy(weights, bias, embedder, val_set, workers=workers)
        logger.info("Epoch %d accuracy = %.4f", epoch, accuracy)
        history.append(EpochMetric(epoch=epoch, accuracy=accuracy))

    return Model(weights=tuple(float(value) for value in weights), bias=float(bias), history=tuple(history))


class Trainer:
    def __init__(self, config: SpamFilterConfig, embedder: EmbeddingProvider, *, rng: np.random.Generator | None = None) -> None:
        self.config = config
        self.embedder = embedder
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)

    def fit(self, train_set: Sequence[LabeledExample], val_set: Sequence[LabeledExample], epochs: int | None = None) -> Model:
        return train(
            train_set,
            val_set,
            epochs if epochs is not None else self.config.epochs,
            embedder=self.embedder,
            learning_rate=self.config.learning_rate,
            rng=self.rng,
            init_scale=self.config.init_scale,
            shuffle=self.config.shuffle,
            workers=self.config.embed_workers,
        )

    def train_and_export(
        self, train_path: Path | None = None, val_path: Path | None = None, epochs: int | None = None
    ) -> dict[str, Any]:
        train_path = train_path or self.config.train_path
        val_path = val_path or self.config.val_path
        train_set = load_dataset(train_path)
        val_set = load_dataset(val_path)
        counts = label_counts(train_set)
        logger.info("Training on %d examples (ham=%d, spam=%d)", counts["total"], counts["ham"], counts["spam"])
        model = self.fit(train_set, val_set, epochs)

        store = ModelStore(self.config.model_path, self.config.metadata_path, archive_dir=self.config.archive_dir)
        metadata = {
            "train_rows": len(train_set),
            "val_rows": len(val_set),
            "learning_rate": float(self.config.learning_rate),
            "embed_model": self.config.embed_model,
            "train_path": str(train_path),
            "val_path": str(val_path),
        }
        paths = store.save(model, metadata=metadata)
        return {"model": model, "metadata": metadata, "paths": paths, "counts": counts}
