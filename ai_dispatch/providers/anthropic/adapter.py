from typing import AsyncIterator, Optional, Sequence

from anthropic import AsyncAnthropic

from ..base import ProviderAdapter
from ..errors import ErrorMapper
from ..support import SEND_MESSAGE, ProviderSupport
from ...config.constants import DEFAULT_MODELS, VALIDATION_MAX_TOKENS, VALIDATION_PROMPT
from ...models.conversation_types import MessageInput, RequestOptions, normalize_messages
from ...models.provider_config import ProviderConfig
from ...models.streaming import StreamCallbacks
from ...registry import ResilienceRegistry
from ...streaming import deliver_with_callbacks
from .parsers import extract_text_from_messages_response
from .payloads import build_messages_params
from .streaming import open_message_stream


AUTH_FAILURE_MARKERS = ("invalid api key", "invalid x-api-key")


class ClaudeProvider(ProviderAdapter):
    """Anthropic Claude provider using the Messages API."""

    provider_name = "claude"

    def __init__(self, config: ProviderConfig, registry: ResilienceRegistry,
                 client: Optional[AsyncAnthropic] = None):
        self.config = config
        self._client = client
        self._owns_client = client is None
        self._model = config.model or DEFAULT_MODELS[self.provider_name]
        self.support = ProviderSupport(self.provider_name, registry,
                                       auth_mode=config.auth_mode.value)

    @property
    def client(self) -> AsyncAnthropic:
        """Lazy initialization of the Anthropic client."""
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self.config.api_key)
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    def get_model(self) -> str:
        return self._model

    def set_model(self, model: str) -> None:
        self._model = model

    async def send_message(
        self,
        messages: Sequence[MessageInput],
        system_prompt: str,
        options: Optional[RequestOptions] = None
    ) -> str:
        opts = self.support.merge_options(options)
        turns = normalize_messages(messages)
        model = self._model
        params = build_messages_params(model, turns, system_prompt, opts)

        async def request() -> str:
            try:
                response = await self.client.messages.create(**params)
            except Exception as e:
                raise ErrorMapper.map_anthropic_error(e) from e
            return extract_text_from_messages_response(response)

        return await self.support.call(
            SEND_MESSAGE,
            request,
            self.support.timeouts.message,
            model,
            metadata=self.support.request_metadata(SEND_MESSAGE, model, turns, system_prompt, opts)
        )

    async def stream(
        self,
        messages: Sequence[MessageInput],
        system_prompt: str,
        options: Optional[RequestOptions] = None
    ) -> AsyncIterator[str]:
        opts = self.support.merge_options(options)
        model = self._model
        params = build_messages_params(model, normalize_messages(messages), system_prompt, opts)

        async for chunk in self.support.stream(
            lambda: open_message_stream(self.client, params), model
        ):
            yield chunk

    async def stream_message(
        self,
        messages: Sequence[MessageInput],
        system_prompt: str,
        callbacks: StreamCallbacks,
        options: Optional[RequestOptions] = None
    ) -> None:
        await deliver_with_callbacks(self.stream(messages, system_prompt, options), callbacks)

    async def validate_api_key(self) -> bool:
        model = self._model

        async def probe() -> bool:
            try:
                await self.client.messages.create(
                    model=model,
                    max_tokens=VALIDATION_MAX_TOKENS,
                    messages=[{"role": "user", "content": VALIDATION_PROMPT}]
                )
            except Exception as e:
                raise ErrorMapper.map_anthropic_error(e) from e
            return True

        return await self.support.validate(
            self.config.credential, probe, model, AUTH_FAILURE_MARKERS
        )
