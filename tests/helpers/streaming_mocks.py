"""Async stream doubles shaped like the vendor SDK event sequences."""

from types import SimpleNamespace as NS
from typing import Any, AsyncGenerator, List


async def create_openai_stream(chunks: List[str]) -> AsyncGenerator[Any, None]:
    """Chat completion chunks: a role-only opener, content deltas, a stop chunk, then usage."""

    def chunk(content=None, role=None, finish_reason=None):
        return NS(choices=[NS(delta=NS(content=content, role=role), finish_reason=finish_reason)])

    yield chunk(role="assistant")
    for piece in chunks:
        yield chunk(content=piece)
    yield chunk(finish_reason="stop")
    # stream_options.include_usage sends a trailing chunk with no choices
    yield NS(choices=[], usage=NS(prompt_tokens=5, completion_tokens=len(chunks)))


async def create_anthropic_stream(chunks: List[str]) -> AsyncGenerator[Any, None]:
    """Messages API server-sent events around a single text block."""
    yield NS(type="message_start", message=NS(id="msg_test", content=[]))
    yield NS(type="content_block_start", index=0, content_block=NS(type="text", text=""))
    yield NS(type="ping")
    for piece in chunks:
        yield NS(type="content_block_delta", index=0, delta=NS(type="text_delta", text=piece))
    yield NS(type="content_block_stop", index=0)
    yield NS(type="message_delta", delta=NS(stop_reason="end_turn"), usage=NS(output_tokens=len(chunks)))
    yield NS(type="message_stop")


async def create_gemini_stream(chunks: List[str]) -> AsyncGenerator[Any, None]:
    """google-genai ``GenerateContentResponse`` chunks; the last one carries no text."""
    for piece in chunks:
        yield NS(text=piece)
    yield NS(text=None)


async def create_failing_stream(chunks: List[str], error: Exception) -> AsyncGenerator[str, None]:
    """Yield plain text chunks, then raise ``error``."""
    for piece in chunks:
        yield piece
    raise error
