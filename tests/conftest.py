"""Shared pytest fixtures for AI Dispatch tests."""

import pytest
from unittest.mock import Mock, AsyncMock, MagicMock

from ai_dispatch.config.settings import DispatchSettings, RetrySettings
from ai_dispatch.models.conversation_types import ConversationMessage, TurnRole
from ai_dispatch.models.provider_config import AuthMode, OAuthTokens, ProviderConfig, ProviderType
from ai_dispatch.registry import ResilienceRegistry
from tests.helpers.streaming_mocks import (
    create_anthropic_stream, create_gemini_stream, create_openai_stream
)


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: end-to-end scenarios across components")


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fast_settings():
    """Default settings with retry backoff disabled."""
    return DispatchSettings(retry=RetrySettings(initial_delay=0.0, max_delay=0.0))


@pytest.fixture
def registry(fast_settings, clock):
    """A fresh registry per test so breakers, caches and monitors never leak."""
    return ResilienceRegistry(fast_settings, clock=clock)


@pytest.fixture
def claude_config():
    return ProviderConfig(type=ProviderType.CLAUDE, api_key="sk-ant-test-key-123456")


@pytest.fixture
def openai_config():
    return ProviderConfig(type=ProviderType.OPENAI, api_key="sk-openai-test-key-123456")


@pytest.fixture
def gemini_config():
    return ProviderConfig(type=ProviderType.GEMINI, api_key="AIza-test-key-123456")


@pytest.fixture
def gemini_oauth_config(clock):
    return ProviderConfig(
        type=ProviderType.GEMINI,
        auth_mode=AuthMode.OAUTH,
        oauth_tokens=OAuthTokens(
            access_token="ya29.test-access-token",
            refresh_token="1//refresh",
            expires_at=clock() + 3 * 24 * 3600,
            email="user@example.com",
        ),
    )


@pytest.fixture
def sample_conversation_messages():
    """Sample conversation messages."""
    return [
        ConversationMessage(role=TurnRole.SYSTEM, content="Answer briefly."),
        ConversationMessage(role=TurnRole.USER, content="What is the weather like?"),
        ConversationMessage(
            role=TurnRole.ASSISTANT,
            content="I don't have access to real-time weather data."
        ),
        ConversationMessage(role=TurnRole.USER, content="Guess, then."),
    ]


@pytest.fixture
def mock_anthropic_client():
    """Mock AsyncAnthropic client."""
    client = AsyncMock()

    message = Mock()
    message.content = [Mock(type="text", text="Test response")]
    message.stop_reason = "end_turn"

    chunks = ["Test", " response"]

    async def create_response(**kwargs):
        if kwargs.get("stream"):
            return create_anthropic_stream(chunks)
        return message

    client.messages.create = AsyncMock(side_effect=create_response)
    return client


@pytest.fixture
def mock_openai_client():
    """Mock AsyncOpenAI client."""
    client = AsyncMock()

    completion = Mock()
    completion.choices = [Mock(message=Mock(content="Test response"), finish_reason="stop")]

    chunks = ["Test", " response", " streaming"]

    async def create_response(**kwargs):
        if kwargs.get("stream"):
            return create_openai_stream(chunks)
        return completion

    client.chat.completions.create = AsyncMock(side_effect=create_response)
    return client


@pytest.fixture
def mock_gemini_client():
    """Mock google-genai Client exposing the ``aio`` surface."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text="Test response"))
    client.aio.models.generate_content_stream = AsyncMock(
        side_effect=lambda **kwargs: create_gemini_stream(["Test", " response"])
    )
    return client
