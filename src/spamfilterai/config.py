# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from .env import get_bool_env, get_env, get_float_env, get_int_env

DECISION_THRESHOLD = 0.5


@dataclass(slots=True)
class SpamFilterConfig:
    data_dir: Path = Path("data")
    logs_dir: Path = Path("logs")
    emails_dir: Path = Path("emails")
    embed_backend: str = "ollama"
    hashing_dimension: int = 256
    ollama_url: str = "http://localhost:11434"
    embed_model: str = "mxbai-embed-large"
    reasoning_model: str = "qwen2.5:1.5b"
    request_timeout: float = 30.0
    max_retries: int = 0
    retry_backoff: float = 1.0
    learning_rate: float = 0.05
    epochs: int = 20
    init_scale: float = 0.005
    seed: int | None = None
    shuffle: bool = False
    embed_workers: int = 1
    cache_dir: Path | None = None
    aggregate_samples: int = 5
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> SpamFilterConfig:
        raw_seed = get_env("SPAM_SEED")
        try:
            seed = int(raw_seed) if raw_seed is not None else None
        except ValueError:
            seed = None
        raw_cache = get_env("SPAM_CACHE_DIR")
        return cls(
            data_dir=Path(get_env("SPAM_DATA_DIR", "data") or "data"),
            logs_dir=Path(get_env("SPAM_LOGS_DIR", "logs") or "logs"),
            emails_dir=Path(get_env("SPAM_EMAILS_DIR", "emails") or "emails"),
            embed_backend=(get_env("SPAM_EMBED_BACKEND", "ollama") or "ollama").lower(),
            hashing_dimension=max(get_int_env("SPAM_HASHING_DIMENSION", 256), 1),
            ollama_url=get_env("SPAM_OLLAMA_URL", "http://localhost:11434") or "http://localhost:11434",
            embed_model=get_env("SPAM_EMBED_MODEL", "mxbai-embed-large") or "mxbai-embed-large",
            reasoning_model=get_env("SPAM_REASONING_MODEL", "qwen2.5:1.5b") or "qwen2.5:1.5b",
            request_timeout=max(get_float_env("SPAM_REQUEST_TIMEOUT", 30.0), 0.1),
            max_retries=max(get_int_env("SPAM_MAX_RETRIES", 0), 0),
            retry_backoff=max(get_float_env("SPAM_RETRY_BACKOFF", 1.0), 0.0),
            learning_rate=get_float_env("SPAM_LEARNING_RATE", 0.05),
            epochs=max(get_int_env("SPAM_EPOCHS", 20), 1),
            init_scale=abs(get_float_env("SPAM_INIT_SCALE", 0.005)),
            seed=seed,
            shuffle=get_bool_env("SPAM_SHUFFLE", False),
            embed_workers=max(get_int_env("SPAM_EMBED_WORKERS", 1), 1),
            cache_dir=Path(raw_cache) if raw_cache else None,
            aggregate_samples=max(get_int_env("SPAM_AGGREGATE_SAMPLES", 5), 1),
            log_level=(get_env("SPAM_LOG_LEVEL", "INFO") or "INFO").upper(),
        )

    def with_overrides(self, **changes: object) -> SpamFilterConfig:
        """Return a copy with every non-None override applied."""
        return replace(self, **{key: value for key, value in changes.items() if value is not None})

    @property
    def train_path(self) -> Path:
        return self.data_dir / "train.jsonl"

    @property
    def val_path(self) -> Path:
        return self.data_dir / "val.jsonl"

    @property
    def test_path(self) -> Path:
        return self.data_dir / "test.jsonl"

    @property
    def model_path(self) -> Path:
        return self.logs_dir / "model.json"

    @property
    def metadata_path(self) -> Path:
        return self.logs_dir / "metadata.json"

    @property
    def results_path(self) -> Path:
        return self.logs_dir / "results.json"

    @property
    def metrics_path(self) -> Path:
        return self.logs_dir / "metrics.json"

    @property
    def aggregation_path(self) -> Path:
        return self.logs_dir / "aggregation.json"

    @property
    def archive_dir(self) -> Path:
        return self.logs_dir / "archive"
