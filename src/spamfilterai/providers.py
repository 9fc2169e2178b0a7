# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MPL-2.0
# Copyright (c) 2026 muffydu37
"""Embedding and reasoning providers.

The trained model never talks to a language model directly: it only consumes
embedding vectors. The reasoning provider is asked for a one-sentence
explanation after a decision has already been taken.
"""

from __future__ import annotations

import hashlib
import logging
import math
import re
import time
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

import httpx
from joblib import Memory, Parallel, delayed

from .config import SpamFilterConfig
from .errors import EmbeddingError, ProviderError, ReasoningError

logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r"[a-z0-9à-öø-ÿ_'-]{2,40}", flags=re.IGNORECASE)


class EmbeddingProvider(Protocol):
    def embed(self, text: str) -> list[float]: ...


class ReasoningProvider(Protocol):
    def explain(self, text: str, decision: str) -> str: ...


def validate_embedding(raw: object) -> list[float]:
    if not isinstance(raw, list) or not raw:
        raise EmbeddingError("invalid embedding result: expected a non-empty numeric array")
    values: list[float] = []
    for item in raw:
        if isinstance(item, bool) or not isinstance(item, (int, float)):
            raise EmbeddingError(f"invalid embedding result: non-numeric value {item!r}")
        value = float(item)
        if not math.isfinite(value):
            raise EmbeddingError("invalid embedding result: non-finite value")
        values.append(value)
    return values


class _OllamaHTTP:
    def __init__(
        self,
        *,
        base_url: str,
        model: str,
        timeout: float,
        max_retries: int,
        retry_backoff: float,
        client: httpx.Client | None,
        error_cls: type[ProviderError],
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout
        self._max_retries = max(max_retries, 0)
        self._retry_backoff = max(retry_backoff, 0.0)
        self._client = client
        self._error_cls = error_cls

    @property
    def model_name(self) -> str:
        return self._model

    def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}{path}"
        attempts = self._max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return self._post_once(url, payload)
            except (httpx.TransportError, httpx.HTTPStatusError) as exc:
                retryable = not isinstance(exc, httpx.HTTPStatusError) or exc.response.status_code >= 500
                if retryable and attempt < attempts:
                    delay = self._retry_backoff * attempt
                    logger.warning("Ollama call to %s failed (%s), retry %d/%d in %.1fs", url, _describe(exc), attempt, self._max_retries, delay)
                    time.sleep(delay)
                    continue
                raise self._error_cls(f"Ollama call to {url} failed: {_describe(exc)}") from exc
        raise self._error_cls(f"Ollama call to {url} failed")

    def _post_once(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        timeout = httpx.Timeout(connect=5.0, read=self._timeout, write=10.0, pool=5.0)
        if self._client is not None:
            response = self._client.post(url, json=payload, timeout=timeout)
        else:
            with httpx.Client(timeout=timeout) as client:
                response = client.post(url, json=payload)
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError as exc:
            raise self._error_cls(f"Ollama returned a non-JSON body from {url}") from exc
        if not isinstance(data, dict):
            raise self._error_cls(f"Ollama returned an unexpected payload from {url}")
        return data


def _describe(exc: Exception) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return "request timed out"
    if isinstance(exc, httpx.ConnectError):
        return "could not connect, is Ollama running?"
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    return str(exc) or type(exc).__name__


class OllamaEmbeddingProvider(_OllamaHTTP):
    def __init__(
        self,
        model: str = "mxbai-embed-large",
        base_url: str = "http://localhost:11434",
        timeout: float = 30.0,
        max_retries: int = 0,
        retry_backoff: float = 1.0,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            model=model,
            timeout=timeout,
            max_retries=max_retries,
            retry_backoff=retry_backoff,
            client=client,
            error_cls=EmbeddingError,
        )

    def embed(self, text: str) -> list[float]:
        data = self._post("/api/embeddings", {"model": self._model, "prompt": text})
        return validate_embedding(data.get("embedding"))


class OllamaReasoningProvider(_OllamaHTTP):
    PROMPT_TEMPLATE = """You are a spam classification assistant.

Explain in ONE short sentence why the following email was classified as "{decision}".

Email:
\"\"\"{text}\"\"\"
"""

    def __init__(
        self,
        model: str = "qwen2.5:1.5b",
        base_url: str = "http://localhost:11434",
        timeout: float = 30.0,
        max_retries: int = 0,
        retry_backoff: float = 1.0,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            model=model,
            timeout=timeout,
            max_retries=max_retries,
            retry_backoff=retry_backoff,
            client=client,
            error_cls=ReasoningError,
        )

    def build_prompt(self, text: str, decision: str) -> str:
        return self.PROMPT_TEMPLATE.format(text=text, decision=decision)

    def explain(self, text: str, decision: str) -> str:
        payload = {
            "model": self._model,
            "messages": [{"role": "user", "content": self.build_prompt(text, decision)}],
            "stream": False,
            "options": {"temperature": 0},
        }
        data = self._post("/api/chat", payload)
        message = data.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise ReasoningError("Ollama chat response carried no message content")
        return content.strip()


class StaticEmbeddingProvider:
    """Deterministic lookup table, used by tests and offline runs."""

    def __init__(self, mapping: Mapping[str, Sequence[float]], default: Sequence[float] | None = None) -> None:
        self._mapping = {text: [float(value) for value in vector] for text, vector in mapping.items()}
        self._default = [float(value) for value in default] if default is not None else None
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        vector = self._mapping.get(text, self._default)
        if vector is None:
            raise EmbeddingError(f"no embedding registered for {text[:40]!r}")
        return list(vector)


class HashingEmbeddingProvider:
    """Bag-of-words feature hashing into a fixed number of buckets."""

    def __init__(self, dimension: int = 64) -> None:
        if dimension < 1:
            raise ValueError("dimension must be >= 1")
        self.dimension = dimension

    def embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for match in TOKEN_RE.finditer(str(text or "").lower()):
            digest = hashlib.blake2b(match.group(0).encode("utf-8"), digest_size=8).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.dimension
            sign = 1.0 if digest[4] & 1 else -1.0
            vector[bucket] += sign
        norm = math.sqrt(sum(value * value for value in vector))
        if norm > 0:
            vector = [value / norm for value in vector]
        return vector


class StaticReasoningProvider:
    def __init__(self, reply: str = "Looks like a routine message.") -> None:
        self.reply = reply
        self.calls: list[tuple[str, str]] = []

    def explain(self, text: str, decision: str) -> str:
        self.calls.append((text, decision))
        return self.reply


class CachedEmbeddingProvider:
    """Memoizes embeddings on disk; results are identical to the wrapped provider."""

    def __init__(self, inner: EmbeddingProvider, cache_dir: Path | str) -> None:
        self.inner = inner
        self._memory = Memory(location=str(cache_dir), verbose=0)
        self._cached = self._memory.cache(_embed_with, ignore=["provider"])

    def embed(self, text: str) -> list[float]:
        return list(self._cached(self.inner, text, _provider_key(self.inner)))

    def clear(self) -> None:
        self._memory.clear(warn=False)


def _embed_with(provider: EmbeddingProvider, text: str, key: str) -> list[float]:
    return provider.embed(text)


def _provider_key(provider: object) -> str:
    model = getattr(provider, "model_name", None)
    return f"{type(provider).__name__}:{model}" if model else type(provider).__name__


def embed_item(provider: EmbeddingProvider, text: str, *, item: str | None = None) -> list[float]:
    """Embed one text; provider failures are re-raised naming ``item``."""
    try:
        return provider.embed(text)
    except EmbeddingError as exc:
        if item is None:
            raise
        raise EmbeddingError(f"{item}: {exc}") from exc


def embed_all(
    provider: EmbeddingProvider, texts: Sequence[str], *, workers: int = 1, label: str | None = None
) -> list[list[float]]:
    """Embed texts, optionally on a thread pool; output order always matches input order.

    With ``label`` set, a failure names the offending text as ``"<label> <index>"``.
    """
    items = [f"{label} {index}" if label else None for index in range(len(texts))]
    if workers <= 1 or len(texts) <= 1:
        return [embed_item(provider, text, item=item) for text, item in zip(texts, items)]
    return list(
        Parallel(n_jobs=workers, prefer="threads")(
            delayed(embed_item)(provider, text, item=item) for text, item in zip(texts, items)
        )
    )


def build_embedding_provider(config: SpamFilterConfig) -> EmbeddingProvider:
    provider: EmbeddingProvider
    if config.embed_backend == "hashing":
        provider = HashingEmbeddingProvider(dimension=config.hashing_dimension)
    elif config.embed_backend == "ollama":
        provider = OllamaEmbeddingProvider(
            model=config.embed_model,
            base_url=config.ollama_url,
            timeout=config.request_timeout,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff,
        )
    else:
        raise ValueError(f"unknown embedding backend {config.embed_backend!r} (expected 'ollama' or 'hashing')")
    if config.cache_dir is not None:
        provider = CachedEmbeddingProvider(provider, config.cache_dir)
    return provider


def build_reasoning_provider(config: SpamFilterConfig) -> ReasoningProvider:
    return OllamaReasoningProvider(
        model=config.reasoning_model,
        base_url=config.ollama_url,
        timeout=config.request_timeout,
        max_retries=config.max_retries,
        retry_backoff=config.retry_backoff,
    )
