from typing import AsyncIterator, Optional, Sequence

from openai import AsyncOpenAI

from ..base import ProviderAdapter
from ..errors import ErrorMapper
from ..support import SEND_MESSAGE, ProviderSupport
from ...config.constants import DEFAULT_MODELS, VALIDATION_MAX_TOKENS, VALIDATION_PROMPT
from ...models.conversation_types import MessageInput, RequestOptions, normalize_messages
from ...models.provider_config import ProviderConfig
from ...models.streaming import StreamCallbacks
from ...registry import ResilienceRegistry
from ...streaming import deliver_with_callbacks
from .parsers import extract_text_from_chat_completion
from .payloads import build_chat_completion_payload
from .streaming import open_chat_stream


AUTH_FAILURE_MARKERS = ("incorrect api key", "invalid api key")


class OpenAIProvider(ProviderAdapter):
    """OpenAI provider using the Chat Completions API."""

    provider_name = "openai"

    def __init__(self, config: ProviderConfig, registry: ResilienceRegistry,
                 client: Optional[AsyncOpenAI] = None):
        self.config = config
        self._client = client
        self._owns_client = client is None
        self._model = config.model or DEFAULT_MODELS[self.provider_name]
        self.support = ProviderSupport(self.provider_name, registry,
                                       auth_mode=config.auth_mode.value)

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy initialization of the OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.config.api_key)
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
        payload = build_chat_completion_payload(model, turns, system_prompt, opts)

        async def request() -> str:
            try:
                response = await self.client.chat.completions.create(**payload)
            except Exception as e:
                raise ErrorMapper.map_openai_error(e) from e
            return extract_text_from_chat_completion(response)

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
        payload = build_chat_completion_payload(model, normalize_messages(messages), system_prompt, opts)

        async for chunk in self.support.stream(
            lambda: open_chat_stream(self.client, payload), model
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
                await self.client.chat.completions.create(
                    model=model,
                    messages=[{"role": "user", "content": VALIDATION_PROMPT}],
                    max_tokens=VALIDATION_MAX_TOKENS
                )
            except Exception as e:
                raise ErrorMapper.map_openai_error(e) from e
            return True

        return await self.support.validate(
            self.config.credential, probe, model, AUTH_FAILURE_MARKERS
        )
