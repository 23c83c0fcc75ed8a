"""Name-keyed registry of embedding providers.

Built once by the composition root and handed to every pipeline, so the
active provider is resolved per call by name rather than through a
module-level global.  Looking up a name nobody registered is a
configuration error and names every registered provider.
"""

from __future__ import annotations

import structlog

from src.interfaces.embedding_provider import IEmbeddingProvider
from src.utils.errors import UnknownProviderError

logger = structlog.get_logger(logger_name=__name__)


class EmbeddingProviderRegistry:
    """Maps provider names (``"openai"``, ``"nomic"``) to instances.

    Parameters
    ----------
    default_name:
        Provider returned by :meth:`get` when no name is passed.
    """

    def __init__(self, default_name: str = "openai") -> None:
        self._default_name = default_name
        self._providers: dict[str, IEmbeddingProvider] = {}

    @property
    def default_name(self) -> str:
        return self._default_name

    def register(self, provider: IEmbeddingProvider) -> None:
        """Register *provider* under its ``name``, replacing any previous one."""
        if provider.name in self._providers:
            logger.warning("embedding_provider_replaced", provider=provider.name)
        self._providers[provider.name] = provider
        logger.debug(
            "embedding_provider_registered",
            provider=provider.name,
            dimensions=provider.dimensions,
        )

    def get(self, name: str | None = None) -> IEmbeddingProvider:
        """Return the provider registered as *name* (default when ``None``).

        Raises
        ------
        UnknownProviderError
            If no provider is registered under that name.
        """
        key = name or self._default_name
        provider = self._providers.get(key)
        if provider is None:
            raise UnknownProviderError(key, self.names())
        return provider

    def names(self) -> list[str]:
        """Registered provider names, in registration order."""
        return list(self._providers)

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __len__(self) -> int:
        return len(self._providers)
