# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from ..errors import DataFormatError
from ..schemas import HAM, SPAM, LabeledExample


def _parse_line(line: str, *, path: Path | str, line_no: int) -> LabeledExample:
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as exc:
        raise DataFormatError(f"invalid JSON ({exc.msg})", path=path, line=line_no) from exc
    if not isinstance(payload, dict):
        raise DataFormatError("record is not a JSON object", path=path, line=line_no)
    text = payload.get("text")
    label = payload.get("label")
    if not isinstance(text, str):
        raise DataFormatError("field 'text' must be a string", path=path, line=line_no)
    if isinstance(label, bool) or label not in (SPAM, HAM):
        raise DataFormatError(f"field 'label' must be 0 or 1, got {label!r}", path=path, line=line_no)
    return LabeledExample(text=text, label=int(label))


def parse_dataset(lines: Iterable[str], *, source: Path | str = "<memory>") -> list[LabeledExample]:
    rows: list[LabeledExample] = []
    for line_no, raw in enumerate(lines, 1):
        line = raw.strip()
        if not line:
            continue
        rows.append(_parse_line(line, path=source, line_no=line_no))
    return rows


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise DataFormatError(f"not valid UTF-8 (byte offset {exc.start})", path=path) from exc
    except OSError as exc:
        raise DataFormatError(f"unreadable ({exc.strerror or exc})", path=path) from exc


def load_dataset(path: Path) -> list[LabeledExample]:
    if not path.exists():
        raise DataFormatError("dataset file not found", path=path)
    return parse_dataset(_read_text(path).splitlines(), source=path)


def to_dataframe(rows: list[LabeledExample]) -> pd.DataFrame:
    return pd.DataFrame([{"text": row.text, "label": int(row.label)} for row in rows], columns=["text", "label"])


def label_counts(rows: list[LabeledExample]) -> dict[str, int]:
    counts = to_dataframe(rows)["label"].value_counts()
    return {"ham": int(counts.get(HAM, 0)), "spam": int(counts.get(SPAM, 0)), "total": len(rows)}


def read_email_folder(folder: Path) -> list[tuple[str, str]]:
    if not folder.is_dir():
        raise DataFormatError("emails folder not found", path=folder)
    return [(path.name, _read_text(path)) for path in sorted(folder.glob("*.txt")) if path.is_file()]


def gold_label_from_filename(name: str) -> int | None:
    stem = Path(name).stem.lower()
    if stem.startswith("spam"):
        return SPAM
    if stem.startswith("ham"):
        return HAM
    return None
