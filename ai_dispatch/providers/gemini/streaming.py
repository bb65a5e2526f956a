from __future__ import annotations

from typing import Any, AsyncIterator, List

from google.genai import types

from ..errors import ErrorMapper
from .parsers import extract_text_from_sdk_response


async def open_content_stream(
    client: Any,
    model: str,
    contents: List[types.Content],
    config: types.GenerateContentConfig,
) -> AsyncIterator[str]:
    """Start ``generate_content_stream`` and return its text chunks."""
    try:
        stream = await client.aio.models.generate_content_stream(
            model=model, contents=contents, config=config
        )
    except Exception as e:
        raise ErrorMapper.map_gemini_error(e) from e
    return iter_chunk_text(stream)


async def iter_chunk_text(stream: Any) -> AsyncIterator[str]:
    try:
        async for chunk in stream:
            text = extract_text_from_sdk_response(chunk)
            if text:
                yield text
    except Exception as e:
        raise ErrorMapper.map_gemini_error(e) from e
