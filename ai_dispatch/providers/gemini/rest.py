"""
Direct REST calls for OAuth mode.

The google-genai client authenticates with an API key only, so delegated
tokens go to the generateContent endpoint as a Bearer header.
"""

from typing import Any, Dict, Optional

import httpx

from ...config.constants import GEMINI_REST_BASE_URL
from ...reliability.retry import get_retry_after


class GeminiRestError(Exception):
    """Non-2xx response from the Gemini REST endpoint."""

    def __init__(self, status_code: int, body: str, response: Optional[httpx.Response] = None):
        super().__init__(f"{status_code} - {body}")
        self.status_code = status_code
        self.body = body
        self.response = response
        self.retry_after = get_retry_after(self) if response is not None else None


async def generate_content(
    http_client: httpx.AsyncClient,
    model: str,
    access_token: str,
    payload: Dict[str, Any],
) -> Dict[str, Any]:
    """POST ``models/{model}:generateContent`` and return the decoded body."""
    response = await http_client.post(
        f"{GEMINI_REST_BASE_URL}/models/{model}:generateContent",
        json=payload,
        headers={"Authorization": f"Bearer {access_token}"},
    )
    if response.status_code < 200 or response.status_code >= 300:
        raise GeminiRestError(response.status_code, response.text, response)
    return response.json()
