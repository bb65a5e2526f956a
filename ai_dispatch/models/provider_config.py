import os
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from ..config.constants import PROVIDER_API_KEY_ENV_VARS


class ProviderType(str, Enum):
    """Supported AI providers."""
    CLAUDE = "claude"
    OPENAI = "openai"
    GEMINI = "gemini"


class AuthMode(str, Enum):
    """How a provider authenticates."""
    API_KEY = "api-key"
    OAUTH = "oauth"


class OAuthTokens(BaseModel):
    """Delegated credentials obtained by an external sign-in flow."""
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[float] = None
    email: Optional[str] = None


class ProviderConfig(BaseModel):
    """
    Configuration for one provider adapter.

    Immutable after the adapter is built, except for the active model which
    adapters expose through ``set_model``.
    """
    type: ProviderType
    api_key: Optional[str] = None
    model: Optional[str] = None
    auth_mode: AuthMode = AuthMode.API_KEY
    oauth_tokens: Optional[OAuthTokens] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_credentials(self):
        if self.auth_mode == AuthMode.OAUTH:
            if self.type != ProviderType.GEMINI:
                raise ValueError(f"OAuth is not supported for {self.type.value} provider")
            if not self.oauth_tokens or not self.oauth_tokens.access_token:
                raise ValueError("OAuth tokens are required for Gemini OAuth mode")
        elif not self.api_key:
            raise ValueError(f"API key is required for {self.type.value} provider")
        return self

    @property
    def credential(self) -> str:
        """The secret used to authenticate, whichever mode is active."""
        if self.auth_mode == AuthMode.OAUTH and self.oauth_tokens:
            return self.oauth_tokens.access_token
        return self.api_key or ""

    @classmethod
    def from_env(cls, provider: str, model: Optional[str] = None) -> "ProviderConfig":
        """Build an API-key config from the provider's standard environment variables."""
        provider_type = ProviderType(provider)
        api_key = next(
            (os.getenv(name) for name in PROVIDER_API_KEY_ENV_VARS[provider_type.value]
             if os.getenv(name)),
            None
        )
        return cls(type=provider_type, api_key=api_key, model=model)
