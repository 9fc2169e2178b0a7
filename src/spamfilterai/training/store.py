# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
from __future__ import annotations

import json
import math
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..errors import DataFormatError
from ..files import read_json, write_json_atomic
from ..schemas import EpochMetric, Model


def _timestamp_key() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(float(value))


def dump_model(model: Model) -> dict[str, Any]:
    return {
        "weights": [float(value) for value in model.weights],
        "bias": float(model.bias),
        "metrics": [{"epoch": int(item.epoch), "accuracy": float(item.accuracy)} for item in model.history],
    }


def model_from_payload(payload: object, *, path: Path | str = "<memory>") -> Model:
    if not isinstance(payload, dict):
        raise DataFormatError("model file is not a JSON object", path=path)
    weights = payload.get("weights")
    bias = payload.get("bias")
    if not isinstance(weights, list) or not weights:
        raise DataFormatError("'weights' must be a non-empty list", path=path)
    if not all(_is_number(value) for value in weights):
        raise DataFormatError("'weights' must contain only finite numbers", path=path)
    if not _is_number(bias):
        raise DataFormatError("'bias' must be a finite number", path=path)
    history: list[EpochMetric] = []
    for index, item in enumerate(payload.get("metrics") or []):
        if not isinstance(item, dict) or not _is_number(item.get("epoch")) or not _is_number(item.get("accuracy")):
            raise DataFormatError(f"metrics entry {index} must be {{epoch, accuracy}}", path=path)
        history.append(EpochMetric(epoch=int(item["epoch"]), accuracy=float(item["accuracy"])))
    return Model(weights=tuple(float(value) for value in weights), bias=float(bias), history=tuple(history))


class ModelStore:
    """Owns the model file at rest; a saved model is never modified in place."""

    def __init__(self, model_path: Path, metadata_path: Path | None = None, *, archive_dir: Path | None = None) -> None:
        self.model_path = model_path
        self.metadata_path = metadata_path
        self.archive_dir = archive_dir

    def exists(self) -> bool:
        return self.model_path.exists()

    def save(self, model: Model, *, metadata: dict[str, Any] | None = None) -> dict[str, str]:
        paths = {"model": str(write_json_atomic(self.model_path, dump_model(model)))}
        written = [self.model_path]
        if self.metadata_path is not None:
            payload = {
                "model_version": _timestamp_key(),
                "created_at_utc": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
                "dimension": model.dimension,
                "epochs": len(model.history),
                "final_accuracy": float(model.history[-1].accuracy) if model.history else None,
                **(metadata or {}),
            }
            paths["metadata"] = str(write_json_atomic(self.metadata_path, payload))
            written.append(self.metadata_path)
        if self.archive_dir is not None:
            archive = self.archive_dir / _timestamp_key()
            archive.mkdir(parents=True, exist_ok=True)
            for path in written:
                shutil.copy2(path, archive / path.name)
            paths["archive"] = str(archive)
        return paths

    def load(self) -> Model:
        if not self.exists():
            raise DataFormatError("model file not found, run training first", path=self.model_path)
        try:
            payload = json.loads(self.model_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise DataFormatError(f"invalid JSON ({exc.msg})", path=self.model_path, line=exc.lineno) from exc
        except UnicodeDecodeError as exc:
            raise DataFormatError("model file is not valid UTF-8", path=self.model_path) from exc
        return model_from_payload(payload, path=self.model_path)

    def load_metadata(self) -> dict[str, Any]:
        if self.metadata_path is None:
            return {}
        payload = read_json(self.metadata_path, default={})
        return payload if isinstance(payload, dict) else {}
