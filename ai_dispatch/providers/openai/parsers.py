from __future__ import annotations

from typing import Any


def extract_text_from_chat_completion(response: Any) -> str:
    """Return the first choice's message content, or an empty string."""
    choices = getattr(response, "choices", None)
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return getattr(message, "content", None) or ""


def extract_text_from_chunk(chunk: Any) -> str:
    """Return the incremental ``delta.content`` of a streamed completion chunk."""
    choices = getattr(chunk, "choices", None)
    if not choices:
        return ""
    delta = getattr(choices[0], "delta", None)
    return getattr(delta, "content", None) or ""
