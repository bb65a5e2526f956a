from __future__ import annotations

from typing import Any


def extract_text_from_messages_response(response: Any) -> str:
    """Concatenate the text blocks of a messages.create response."""
    text_content = ""
    for content_block in getattr(response, "content", None) or []:
        if getattr(content_block, "type", None) == "text":
            text_content += getattr(content_block, "text", "") or ""
    return text_content


def extract_text_delta(event: Any) -> str:
    """Return the text carried by a ``content_block_delta`` stream event."""
    if getattr(event, "type", None) != "content_block_delta":
        return ""
    delta = getattr(event, "delta", None)
    return getattr(delta, "text", None) or ""
