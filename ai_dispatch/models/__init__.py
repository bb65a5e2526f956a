"""Data models for the dispatch layer."""

from .conversation_types import (
    ConversationMessage,
    RequestOptions,
    TurnRole,
    normalize_messages,
)
from .provider_config import AuthMode, OAuthTokens, ProviderConfig, ProviderType
from .streaming import StreamCallbacks

__all__ = [
    # Conversation models
    "ConversationMessage",
    "TurnRole",
    "RequestOptions",
    "normalize_messages",

    # Provider configuration
    "AuthMode",
    "OAuthTokens",
    "ProviderConfig",
    "ProviderType",

    # Streaming
    "StreamCallbacks",
]
