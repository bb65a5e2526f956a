"""
AI Dispatch - Resilient dispatch of conversations to AI providers.

This package provides one interface over several AI services:
- Anthropic (Claude models)
- OpenAI (GPT models)
- Google (Gemini models, API key or OAuth)

Features:
- Timeout guards, retries with backoff and circuit breakers on every call
- Streaming as async iterators or callbacks
- Cached credential validation
- Sliding-window rate limiting
- Performance monitoring and failed-operation recovery
"""

__version__ = "0.1.0"

from .config.settings import DispatchSettings
from .models.conversation_types import ConversationMessage, RequestOptions, TurnRole
from .models.provider_config import AuthMode, OAuthTokens, ProviderConfig, ProviderType
from .models.streaming import StreamCallbacks
from .monitoring import HealthCheckService, MonitoringService
from .providers import (
    ClaudeProvider,
    GeminiProvider,
    OpenAIProvider,
    ProviderAdapter,
    ProviderError,
    ProviderFactory,
)
from .registry import ResilienceRegistry

__all__ = [
    # Registry and settings
    "ResilienceRegistry",
    "DispatchSettings",

    # Providers
    "ProviderAdapter",
    "ProviderError",
    "ProviderFactory",
    "ClaudeProvider",
    "OpenAIProvider",
    "GeminiProvider",

    # Models
    "ConversationMessage",
    "RequestOptions",
    "TurnRole",
    "AuthMode",
    "OAuthTokens",
    "ProviderConfig",
    "ProviderType",
    "StreamCallbacks",

    # Monitoring
    "HealthCheckService",
    "MonitoringService",
]
