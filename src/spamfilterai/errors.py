# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
"""Error hierarchy shared by training, inference and evaluation."""

from __future__ import annotations

from pathlib import Path


class SpamFilterError(Exception):
    """Base class for every fatal error raised by the package."""


class ProviderError(SpamFilterError):
    """An external provider was unreachable or answered with garbage."""


class EmbeddingError(ProviderError):
    pass


class ReasoningError(ProviderError):
    pass


class DataFormatError(SpamFilterError):
    """A dataset line or a persisted file could not be parsed."""

    def __init__(self, reason: str, *, path: Path | str | None = None, line: int | None = None) -> None:
        self.reason = reason
        self.path = Path(path) if path is not None else None
        self.line = line
        location = ""
        if self.path is not None:
            location = str(self.path)
            if line is not None:
                location = f"{location}:{line}"
        super().__init__(f"{location}: {reason}" if location else reason)


class DimensionMismatchError(SpamFilterError):
    def __init__(self, expected: int, actual: int, *, item: str | None = None) -> None:
        self.expected = expected
        self.actual = actual
        self.item = item
        message = f"embedding dimension {actual} does not match model dimension {expected}"
        super().__init__(f"{item}: {message}" if item else message)


class NonFiniteScoreError(SpamFilterError):
    """Model arithmetic produced NaN for an item."""
