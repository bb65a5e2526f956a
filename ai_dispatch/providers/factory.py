"""Construct provider adapters from a ProviderConfig."""

import logging
from typing import Dict, List, Type

from ..models.provider_config import ProviderConfig, ProviderType
from ..registry import ResilienceRegistry
from .anthropic.adapter import ClaudeProvider
from .base import ProviderAdapter
from .gemini.adapter import GeminiProvider
from .openai.adapter import OpenAIProvider

logger = logging.getLogger(__name__)


class ProviderFactory:
    """Maps provider types to adapter classes."""

    PROVIDERS: Dict[ProviderType, Type[ProviderAdapter]] = {
        ProviderType.CLAUDE: ClaudeProvider,
        ProviderType.OPENAI: OpenAIProvider,
        ProviderType.GEMINI: GeminiProvider,
    }

    @classmethod
    def create(cls, config: ProviderConfig, registry: ResilienceRegistry) -> ProviderAdapter:
        """
        Build the adapter for ``config.type``.

        Credential requirements are enforced by ProviderConfig itself: an API
        key for every provider, or an access token for Gemini in OAuth mode.
        """
        provider_class = cls.PROVIDERS.get(config.type)
        if provider_class is None:
            raise ValueError(f"Unsupported provider type: {config.type}")
        logger.debug("Creating %s provider (auth_mode=%s)", config.type.value, config.auth_mode.value)
        return provider_class(config, registry)

    @classmethod
    def get_supported_providers(cls) -> List[str]:
        return [provider.value for provider in cls.PROVIDERS]

    @classmethod
    def is_supported(cls, name: str) -> bool:
        return name in cls.get_supported_providers()

    @classmethod
    async def create_and_validate(cls, config: ProviderConfig,
                                  registry: ResilienceRegistry) -> ProviderAdapter:
        """
        Build an adapter and check its credential.

        Raises:
            ValueError: If the credential is rejected
        """
        provider = cls.create(config, registry)
        if not await provider.validate_api_key():
            raise ValueError(f"Invalid credentials for {config.type.value} provider")
        return provider
