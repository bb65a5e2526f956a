from __future__ import annotations

from typing import Any, Dict, List, Sequence

from ...models.conversation_types import ConversationMessage, RequestOptions, split_system_messages


def build_messages_params(
    model: str,
    messages: Sequence[ConversationMessage],
    system_prompt: str,
    options: RequestOptions,
) -> Dict[str, Any]:
    """Build messages.create keyword arguments.

    System-role turns are folded into the top-level ``system`` field after the
    explicit system prompt; an empty system is omitted.
    """
    extra_system, turns = split_system_messages(messages)
    system = "\n\n".join(part for part in [system_prompt, *extra_system] if part)

    formatted: List[Dict[str, str]] = [
        {"role": m.role.value, "content": m.content} for m in turns
    ]
    params: Dict[str, Any] = {
        "model": model,
        "max_tokens": options.max_tokens,
        "temperature": options.temperature,
        "messages": formatted,
    }
    if system:
        params["system"] = system
    return params
