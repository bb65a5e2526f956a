from typing import AsyncIterator, Optional, Sequence

import httpx
from google import genai

from ..base import ProviderAdapter
from ..errors import ErrorMapper
from ..support import SEND_MESSAGE, ProviderSupport
from ...config.constants import DEFAULT_MODELS, VALIDATION_MAX_TOKENS, VALIDATION_PROMPT
from ...models.conversation_types import (
    ConversationMessage,
    MessageInput,
    RequestOptions,
    TurnRole,
    normalize_messages,
)
from ...models.provider_config import AuthMode, ProviderConfig
from ...models.streaming import StreamCallbacks
from ...registry import ResilienceRegistry
from ...streaming import deliver_with_callbacks, replay_as_stream
from . import rest
from .parsers import extract_text_from_rest_response, extract_text_from_sdk_response
from .payloads import build_rest_payload, build_sdk_config, build_sdk_contents, prepare_turns
from .streaming import open_content_stream


AUTH_FAILURE_MARKERS = (
    "api_key_invalid",
    "api key not valid",
    "invalid api key",
    "unauthenticated",
    "invalid_grant",
)
AUTH_FAILURE_STATUSES = (401, 403)


class GeminiProvider(ProviderAdapter):
    """
    Google Gemini provider.

    API-key mode uses the google-genai client with native streaming. OAuth
    mode calls the REST endpoint with a Bearer token and buffers streams
    into a single chunk.
    """

    provider_name = "gemini"

    def __init__(
        self,
        config: ProviderConfig,
        registry: ResilienceRegistry,
        client: Optional[genai.Client] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config
        self._client = client
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._model = config.model or DEFAULT_MODELS[self.provider_name]
        self.support = ProviderSupport(self.provider_name, registry,
                                       auth_mode=config.auth_mode.value)
        if self.is_oauth:
            self.support.logger.info("Initialized with OAuth authentication",
                                     email=self.get_connected_email())

    @property
    def is_oauth(self) -> bool:
        return self.config.auth_mode == AuthMode.OAUTH

    @property
    def client(self) -> genai.Client:
        """Lazy initialization of the google-genai client (API-key mode)."""
        if self._client is None:
            self._client = genai.Client(api_key=self.config.api_key)
        return self._client

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient()
        return self._http_client

    async def aclose(self) -> None:
        """Close the OAuth REST client if this adapter opened it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def get_model(self) -> str:
        return self._model

    def set_model(self, model: str) -> None:
        self._model = model

    def get_auth_mode(self) -> AuthMode:
        return self.config.auth_mode

    def get_connected_email(self) -> Optional[str]:
        if self.is_oauth and self.config.oauth_tokens:
            return self.config.oauth_tokens.email
        return None

    async def _generate(self, model: str, turns: Sequence[ConversationMessage],
                        system: Optional[str], options: RequestOptions) -> str:
        try:
            if self.is_oauth:
                data = await rest.generate_content(
                    self.http_client,
                    model,
                    self.config.credential,
                    build_rest_payload(turns, system, options)
                )
                return extract_text_from_rest_response(data)

            response = await self.client.aio.models.generate_content(
                model=model,
                contents=build_sdk_contents(turns),
                config=build_sdk_config(system, options)
            )
            return extract_text_from_sdk_response(response)
        except Exception as e:
            raise ErrorMapper.map_gemini_error(e) from e

    async def send_message(
        self,
        messages: Sequence[MessageInput],
        system_prompt: str,
        options: Optional[RequestOptions] = None
    ) -> str:
        opts = self.support.merge_options(options)
        normalized = normalize_messages(messages)
        system, turns = prepare_turns(normalized, system_prompt)
        model = self._model

        return await self.support.call(
            SEND_MESSAGE,
            lambda: self._generate(model, turns, system, opts),
            self.support.timeouts.message,
            model,
            metadata=self.support.request_metadata(SEND_MESSAGE, model, normalized,
                                                   system_prompt, opts)
        )

    async def stream(
        self,
        messages: Sequence[MessageInput],
        system_prompt: str,
        options: Optional[RequestOptions] = None
    ) -> AsyncIterator[str]:
        opts = self.support.merge_options(options)
        system, turns = prepare_turns(normalize_messages(messages), system_prompt)
        model = self._model

        async def open_stream() -> AsyncIterator[str]:
            if self.is_oauth:
                return replay_as_stream(await self._generate(model, turns, system, opts))
            return await open_content_stream(
                self.client, model, build_sdk_contents(turns), build_sdk_config(system, opts)
            )

        async for chunk in self.support.stream(open_stream, model):
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
        turns = [ConversationMessage(role=TurnRole.USER, content=VALIDATION_PROMPT)]
        probe_options = RequestOptions(max_tokens=VALIDATION_MAX_TOKENS)

        return await self.support.validate(
            self.config.credential,
            lambda: self._generate(model, turns, None, probe_options),
            model,
            AUTH_FAILURE_MARKERS,
            AUTH_FAILURE_STATUSES
        )
