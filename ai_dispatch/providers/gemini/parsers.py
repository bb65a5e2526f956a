from __future__ import annotations

from typing import Any, Dict


def extract_text_from_sdk_response(response: Any) -> str:
    """Return the text of a google-genai response or stream chunk."""
    return getattr(response, "text", None) or ""


def extract_text_from_rest_response(data: Dict[str, Any]) -> str:
    """Return ``candidates[0].content.parts[0].text`` from a REST response body."""
    try:
        return data["candidates"][0]["content"]["parts"][0].get("text") or ""
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""
