"""Shared fixtures for the spam filter tests."""

import json
from pathlib import Path

import numpy as np
import pytest

from spamfilterai.config import SpamFilterConfig
from spamfilterai.providers import StaticEmbeddingProvider, StaticReasoningProvider
from spamfilterai.schemas import LabeledExample, Model

HAM_TEXT = "Lunch tomorrow at noon?"
SPAM_TEXT = "WIN A FREE CRUISE NOW"


def write_jsonl(path: Path, rows: list[dict]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(json.dumps(row) for row in rows) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def embedder() -> StaticEmbeddingProvider:
    """Two linearly separable texts: ham on the first axis, spam on the second."""
    return StaticEmbeddingProvider({HAM_TEXT: [1.0, 0.0], SPAM_TEXT: [0.0, 1.0]})


@pytest.fixture
def reasoner() -> StaticReasoningProvider:
    return StaticReasoningProvider("It reads like a personal note.")


@pytest.fixture
def two_point_set() -> list[LabeledExample]:
    return [LabeledExample(text=HAM_TEXT, label=1), LabeledExample(text=SPAM_TEXT, label=0)]


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(7)


@pytest.fixture
def separating_model() -> Model:
    """Hand-made model that forwards the ham axis and discards the spam axis."""
    return Model(weights=(4.0, -4.0), bias=0.0)


@pytest.fixture
def config(tmp_path: Path) -> SpamFilterConfig:
    return SpamFilterConfig(
        data_dir=tmp_path / "data",
        logs_dir=tmp_path / "logs",
        emails_dir=tmp_path / "emails",
        seed=11,
        epochs=25,
    )


@pytest.fixture
def populated_config(config: SpamFilterConfig) -> SpamFilterConfig:
    """Config whose data and emails folders hold the two-point corpus."""
    rows = [{"text": HAM_TEXT, "label": 1}, {"text": SPAM_TEXT, "label": 0}]
    write_jsonl(config.train_path, rows)
    write_jsonl(config.val_path, rows)
    write_jsonl(config.test_path, rows)
    config.emails_dir.mkdir(parents=True, exist_ok=True)
    (config.emails_dir / "ham_1.txt").write_text(HAM_TEXT, encoding="utf-8")
    (config.emails_dir / "spam_1.txt").write_text(SPAM_TEXT, encoding="utf-8")
    return config
