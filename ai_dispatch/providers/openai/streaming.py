from __future__ import annotations

from typing import Any, AsyncIterator, Dict

from ..errors import ErrorMapper
from .parsers import extract_text_from_chunk


async def open_chat_stream(client: Any, payload: Dict[str, Any]) -> AsyncIterator[str]:
    """Start a streaming chat completion and return its text deltas."""
    try:
        stream = await client.chat.completions.create(**payload, stream=True)
    except Exception as e:
        raise ErrorMapper.map_openai_error(e) from e
    return iter_content_deltas(stream)


async def iter_content_deltas(stream: Any) -> AsyncIterator[str]:
    """Yield ``delta.content`` pieces, mapping mid-stream failures."""
    try:
        async for chunk in stream:
            piece = extract_text_from_chunk(chunk)
            if piece:
                yield piece
    except Exception as e:
        raise ErrorMapper.map_openai_error(e) from e
