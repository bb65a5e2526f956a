"""
Provider Adapters Layer

Each adapter translates the canonical {messages, system_prompt, options}
request into one AI service's request shape and runs it through the shared
resilience chain.
"""

from .base import ProviderAdapter, ProviderError
from .errors import ErrorMapper
from .support import ProviderSupport
from .anthropic.adapter import ClaudeProvider
from .openai.adapter import OpenAIProvider
from .gemini.adapter import GeminiProvider
from .factory import ProviderFactory

__all__ = [
    "ProviderAdapter",
    "ProviderError",
    "ErrorMapper",
    "ProviderSupport",
    "ClaudeProvider",
    "OpenAIProvider",
    "GeminiProvider",
    "ProviderFactory",
]
