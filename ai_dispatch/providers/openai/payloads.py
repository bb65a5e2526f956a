from typing import Any, Dict, List, Sequence

from ...models.conversation_types import ConversationMessage, RequestOptions, split_system_messages


def build_chat_messages(
    messages: Sequence[ConversationMessage],
    system_prompt: str,
) -> List[Dict[str, str]]:
    """Put the system prompt first, then system-role turns, then the conversation."""
    extra_system, turns = split_system_messages(messages)
    formatted: List[Dict[str, str]] = []
    if system_prompt:
        formatted.append({"role": "system", "content": system_prompt})
    formatted.extend({"role": "system", "content": text} for text in extra_system)
    formatted.extend({"role": m.role.value, "content": m.content} for m in turns)
    return formatted


def build_chat_completion_payload(
    model: str,
    messages: Sequence[ConversationMessage],
    system_prompt: str,
    options: RequestOptions,
) -> Dict[str, Any]:
    """Build chat.completions.create keyword arguments."""
    return {
        "model": model,
        "messages": build_chat_messages(messages, system_prompt),
        "max_tokens": options.max_tokens,
        "temperature": options.temperature,
    }
