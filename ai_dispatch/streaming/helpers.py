"""Helper utilities for common streaming patterns."""

from __future__ import annotations

import inspect
from typing import AsyncIterator, Callable, List, Optional

from ..models.streaming import StreamCallbacks


async def _invoke(callback: Optional[Callable], value) -> None:
    if callback is None:
        return
    result = callback(value)
    if inspect.isawaitable(result):
        await result


async def deliver_with_callbacks(
    chunks: AsyncIterator[str],
    callbacks: StreamCallbacks
) -> str:
    """
    Drain a chunk stream into callbacks.

    Each chunk goes to ``on_token``; the full text goes to ``on_complete``.
    On failure ``on_error`` is called and the error is still raised, so
    callers watching either channel see the same outcome.

    Returns:
        The full concatenated text
    """
    collected: List[str] = []
    try:
        async for chunk in chunks:
            collected.append(chunk)
            await _invoke(callbacks.on_token, chunk)
        full_text = "".join(collected)
        await _invoke(callbacks.on_complete, full_text)
    except Exception as error:
        await _invoke(callbacks.on_error, error)
        raise
    return full_text


async def replay_as_stream(text: str) -> AsyncIterator[str]:
    """Yield the buffered text of a non-streaming call as one chunk."""
    if text:
        yield text
