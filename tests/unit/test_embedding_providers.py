"""Unit tests for embedding provider adapters - OpenAI, Nomic - and the registry."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from src.config.settings import Settings
from src.providers.embedding.registry import EmbeddingProviderRegistry
from src.utils.errors import ConfigurationError, RAGError, UnknownProviderError


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_embedding_model": "",
        "ollama_base_url": "http://localhost:11434",
    }
    defaults.update(overrides)
    return Settings(**defaults)


def _embedding_response(vector: list[float]) -> MagicMock:
    response = MagicMock()
    response.data = [MagicMock(embedding=vector)]
    response.usage = MagicMock(total_tokens=7)
    return response


def _api_error() -> openai.APIError:
    request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
    return openai.APIError("rate limited", request=request, body=None)


# ======================================================================
# OpenAI Embedding Provider
# ======================================================================


class TestOpenAIEmbeddingProvider:
    def test_requires_api_key(self) -> None:
        from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        with pytest.raises(ConfigurationError):
            OpenAIEmbeddingProvider(_settings(openai_api_key=""))

    def test_defaults(self) -> None:
        from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        provider = OpenAIEmbeddingProvider(_settings(), client=AsyncMock())
        assert provider.name == "openai"
        assert provider.dimensions == 1536
        assert provider.is_available() is True

    def test_known_model_dimension(self) -> None:
        from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        provider = OpenAIEmbeddingProvider(
            _settings(openai_embedding_model="text-embedding-3-large"), client=AsyncMock()
        )
        assert provider.dimensions == 3072

    def test_custom_base_url_passed_to_client(self) -> None:
        from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        with patch(
            "src.providers.embedding.openai_embedding_provider.openai.AsyncOpenAI"
        ) as client_cls:
            OpenAIEmbeddingProvider(
                _settings(
                    openai_base_url="https://api.together.xyz/v1",
                    openai_embedding_model="BAAI/bge-base-en-v1.5",
                )
            )
        client_cls.assert_called_once_with(
            api_key="sk-test", base_url="https://api.together.xyz/v1"
        )

    @pytest.mark.asyncio
    async def test_embed_single_text(self) -> None:
        from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        client = AsyncMock()
        client.embeddings.create = AsyncMock(return_value=_embedding_response([0.5] * 1536))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        vector = await provider.embed("hello")

        assert len(vector) == 1536
        client.embeddings.create.assert_awaited_once_with(
            input=["hello"], model="text-embedding-3-small"
        )

    @pytest.mark.asyncio
    async def test_api_error_becomes_rag_error(self) -> None:
        from src.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

        client = AsyncMock()
        client.embeddings.create = AsyncMock(side_effect=_api_error())
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        with pytest.raises(RAGError) as exc_info:
            await provider.embed("hello")
        assert exc_info.value.provider_name == "openai_embedding"


# ======================================================================
# Nomic Embedding Provider
# ======================================================================


class TestNomicEmbeddingProvider:
    def test_properties(self) -> None:
        from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        provider = NomicEmbeddingProvider(_settings(), client=AsyncMock())
        assert provider.name == "nomic"
        assert provider.dimensions == 768

    @pytest.mark.asyncio
    async def test_embed(self) -> None:
        from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        client = AsyncMock()
        client.embeddings.create = AsyncMock(return_value=_embedding_response([0.1] * 768))
        provider = NomicEmbeddingProvider(_settings(), client=client)

        vector = await provider.embed("text")
        assert len(vector) == 768
        client.embeddings.create.assert_awaited_once_with(
            input=["text"], model="nomic-embed-text"
        )

    @pytest.mark.asyncio
    async def test_api_error_becomes_rag_error(self) -> None:
        from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        client = AsyncMock()
        client.embeddings.create = AsyncMock(side_effect=_api_error())
        provider = NomicEmbeddingProvider(_settings(), client=client)

        with pytest.raises(RAGError):
            await provider.embed("text")

    def test_is_available_when_ollama_responds(self) -> None:
        from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        provider = NomicEmbeddingProvider(_settings(), client=AsyncMock())
        with patch(
            "src.providers.embedding.nomic_embedding_provider.httpx.get",
            return_value=MagicMock(status_code=200),
        ) as get:
            assert provider.is_available() is True
        get.assert_called_once_with("http://localhost:11434/api/tags", timeout=3.0)

    def test_is_unavailable_when_unreachable(self) -> None:
        from src.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider

        provider = NomicEmbeddingProvider(_settings(), client=AsyncMock())
        with patch(
            "src.providers.embedding.nomic_embedding_provider.httpx.get",
            side_effect=httpx.ConnectError("refused"),
        ):
            assert provider.is_available() is False


# ======================================================================
# Registry
# ======================================================================


class TestEmbeddingProviderRegistry:
    def test_get_default(self, embedding_provider) -> None:
        registry = EmbeddingProviderRegistry(default_name="mock")
        registry.register(embedding_provider)

        assert registry.get() is embedding_provider
        assert registry.get("mock") is embedding_provider
        assert "mock" in registry
        assert len(registry) == 1

    def test_unknown_name_lists_registered(self, embedding_provider) -> None:
        registry = EmbeddingProviderRegistry(default_name="openai")
        registry.register(embedding_provider)

        with pytest.raises(UnknownProviderError) as exc_info:
            registry.get()

        assert exc_info.value.requested == "openai"
        assert exc_info.value.available == ["mock"]
        assert "mock" in str(exc_info.value)

    def test_register_replaces_same_name(self) -> None:
        from tests.conftest import MockEmbeddingProvider

        registry = EmbeddingProviderRegistry(default_name="mock")
        first = MockEmbeddingProvider(dimensions=4)
        second = MockEmbeddingProvider(dimensions=16)
        registry.register(first)
        registry.register(second)

        assert registry.get() is second
        assert registry.names() == ["mock"]
