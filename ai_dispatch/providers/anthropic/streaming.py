from __future__ import annotations

from typing import Any, AsyncIterator, Dict

from ..errors import ErrorMapper
from .parsers import extract_text_delta


async def open_message_stream(client: Any, params: Dict[str, Any]) -> AsyncIterator[str]:
    """Start a streaming messages.create call and return its text chunks."""
    try:
        stream = await client.messages.create(**params, stream=True)
    except Exception as e:
        raise ErrorMapper.map_anthropic_error(e) from e
    return iter_text_deltas(stream)


async def iter_text_deltas(stream: Any) -> AsyncIterator[str]:
    """Yield text from content block deltas, mapping mid-stream failures."""
    try:
        async for event in stream:
            text = extract_text_delta(event)
            if text:
                yield text
    except Exception as e:
        raise ErrorMapper.map_anthropic_error(e) from e
