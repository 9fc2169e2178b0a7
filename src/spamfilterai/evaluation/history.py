# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..files import write_json_atomic
from ..schemas import Metrics

logger = logging.getLogger(__name__)

_LOCKS: dict[Path, threading.Lock] = {}
_LOCKS_GUARD = threading.Lock()


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _lock_for(path: Path) -> threading.Lock:
    key = path.resolve()
    with _LOCKS_GUARD:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = _LOCKS[key] = threading.Lock()
        return lock


class MetricsHistory:
    """Append-only list of timestamped metric entries stored as one JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Metrics history %s is unreadable (%s), starting a new one", self.path, exc)
            return []
        if not isinstance(payload, list):
            logger.warning("Metrics history %s is not a list, starting a new one", self.path)
            return []
        return [entry for entry in payload if isinstance(entry, dict)]

    def append(self, metrics: Metrics, **context: Any) -> dict[str, Any]:
        entry = {"timestamp": _iso_now(), **context, **metrics.to_dict()}
        with _lock_for(self.path):
            entries = self.read()
            entries.append(entry)
            write_json_atomic(self.path, entries)
        return entry
