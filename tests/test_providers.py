"""Tests for the Ollama-backed and stub providers."""

import json

import httpx
import pytest

from spamfilterai.config import SpamFilterConfig
from spamfilterai.errors import EmbeddingError, ReasoningError
from spamfilterai.providers import (
    CachedEmbeddingProvider,
    HashingEmbeddingProvider,
    OllamaEmbeddingProvider,
    OllamaReasoningProvider,
    StaticEmbeddingProvider,
    build_embedding_provider,
    embed_all,
    validate_embedding,
)


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestOllamaEmbeddingProvider:
    def test_posts_model_and_prompt(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"embedding": [0.1, -2, 3.5]})

        provider = OllamaEmbeddingProvider(model="mxbai-embed-large", base_url="http://ollama:11434/", client=_client(handler))

        assert provider.embed("hello") == [0.1, -2.0, 3.5]
        assert seen["url"] == "http://ollama:11434/api/embeddings"
        assert seen["body"] == {"model": "mxbai-embed-large", "prompt": "hello"}

    @pytest.mark.parametrize(
        "payload",
        [{}, {"embedding": None}, {"embedding": []}, {"embedding": [1.0, "x"]}, {"embedding": "1,2"}, {"embedding": [True]}],
    )
    def test_malformed_embedding(self, payload):
        provider = OllamaEmbeddingProvider(client=_client(lambda request: httpx.Response(200, json=payload)))

        with pytest.raises(EmbeddingError):
            provider.embed("hello")

    def test_non_json_body(self):
        provider = OllamaEmbeddingProvider(client=_client(lambda request: httpx.Response(200, text="<html>")))

        with pytest.raises(EmbeddingError):
            provider.embed("hello")

    def test_unreachable_server(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = OllamaEmbeddingProvider(client=_client(handler))

        with pytest.raises(EmbeddingError, match="is Ollama running"):
            provider.embed("hello")

    def test_client_error_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404, json={"error": "model not found"})

        provider = OllamaEmbeddingProvider(client=_client(handler), max_retries=3, retry_backoff=0.0)

        with pytest.raises(EmbeddingError, match="HTTP 404"):
            provider.embed("hello")
        assert len(calls) == 1

    def test_server_errors_are_retried(self):
        responses = [httpx.Response(503), httpx.Response(200, json={"embedding": [1.0]})]

        provider = OllamaEmbeddingProvider(
            client=_client(lambda request: responses.pop(0)), max_retries=2, retry_backoff=0.0
        )

        assert provider.embed("hello") == [1.0]
        assert responses == []

    def test_timeout_after_retries(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ReadTimeout("slow", request=request)

        provider = OllamaEmbeddingProvider(client=_client(handler), max_retries=2, retry_backoff=0.0)

        with pytest.raises(EmbeddingError, match="timed out"):
            provider.embed("hello")
        assert len(calls) == 3


class TestOllamaReasoningProvider:
    def test_chat_request_and_reply(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": {"role": "assistant", "content": "  Offers a prize.\n"}})

        provider = OllamaReasoningProvider(model="qwen2.5:1.5b", client=_client(handler))

        assert provider.explain("You won!", "discard") == "Offers a prize."
        assert seen["url"].endswith("/api/chat")
        assert seen["body"]["stream"] is False
        assert seen["body"]["options"] == {"temperature": 0}
        prompt = seen["body"]["messages"][0]["content"]
        assert '"discard"' in prompt
        assert "You won!" in prompt

    def test_missing_content(self):
        provider = OllamaReasoningProvider(client=_client(lambda request: httpx.Response(200, json={"done": True})))

        with pytest.raises(ReasoningError):
            provider.explain("text", "forward")


class TestStubProviders:
    def test_static_provider_unknown_text(self):
        with pytest.raises(EmbeddingError):
            StaticEmbeddingProvider({"a": [1.0]}).embed("b")

    def test_static_provider_default(self):
        assert StaticEmbeddingProvider({}, default=[0.5]).embed("anything") == [0.5]

    def test_hashing_provider_is_deterministic(self):
        provider = HashingEmbeddingProvider(dimension=16)

        first = provider.embed("Free money, click here")
        second = provider.embed("Free money, click here")

        assert first == second
        assert len(first) == 16
        assert sum(value * value for value in first) == pytest.approx(1.0)

    def test_hashing_provider_empty_text(self):
        assert HashingEmbeddingProvider(dimension=4).embed("") == [0.0, 0.0, 0.0, 0.0]


def test_validate_embedding_rejects_nan():
    with pytest.raises(EmbeddingError):
        validate_embedding([1.0, float("nan")])


def test_embed_all_preserves_order():
    provider = StaticEmbeddingProvider({str(i): [float(i)] for i in range(20)})
    texts = [str(i) for i in range(20)]

    assert embed_all(provider, texts, workers=4) == [[float(i)] for i in range(20)]


@pytest.mark.parametrize("workers", [1, 3])
def test_embed_all_names_the_failing_index(workers):
    provider = StaticEmbeddingProvider({"a": [1.0], "b": [2.0]})

    with pytest.raises(EmbeddingError, match="test example 2: no embedding registered"):
        embed_all(provider, ["a", "b", "c"], workers=workers, label="test example")


class TestCachedEmbeddingProvider:
    def test_second_call_hits_cache(self, tmp_path):
        inner = StaticEmbeddingProvider({"hello": [1.0, 2.0]})
        cached = CachedEmbeddingProvider(inner, tmp_path / "cache")

        assert cached.embed("hello") == [1.0, 2.0]
        assert cached.embed("hello") == [1.0, 2.0]
        assert inner.calls == ["hello"]

    def test_factory_wraps_when_cache_dir_set(self, tmp_path):
        provider = build_embedding_provider(SpamFilterConfig(cache_dir=tmp_path / "cache"))

        assert isinstance(provider, CachedEmbeddingProvider)
        assert isinstance(provider.inner, OllamaEmbeddingProvider)


def test_factory_hashing_backend():
    provider = build_embedding_provider(SpamFilterConfig(embed_backend="hashing", hashing_dimension=8))

    assert isinstance(provider, HashingEmbeddingProvider)
    assert provider.dimension == 8


def test_factory_unknown_backend():
    with pytest.raises(ValueError):
        build_embedding_provider(SpamFilterConfig(embed_backend="word2vec"))
