from typing import Any, Dict, List, Optional, Sequence, Tuple

from google.genai import types

from ...models.conversation_types import (
    ConversationMessage,
    RequestOptions,
    TurnRole,
    split_system_messages,
)


def prepare_turns(
    messages: Sequence[ConversationMessage],
    system_prompt: str,
) -> Tuple[Optional[str], List[ConversationMessage]]:
    """Split out the system instruction and check the turn order.

    Raises:
        ValueError: If there is no turn or the last turn is not from the user
    """
    extra_system, turns = split_system_messages(messages)
    if not turns or turns[-1].role != TurnRole.USER:
        raise ValueError("Gemini requires the last message to be from the user")
    system = "\n\n".join(part for part in [system_prompt, *extra_system] if part)
    return system or None, turns


def _gemini_role(role: TurnRole) -> str:
    return "model" if role == TurnRole.ASSISTANT else "user"


def build_sdk_contents(turns: Sequence[ConversationMessage]) -> List[types.Content]:
    return [
        types.Content(role=_gemini_role(m.role), parts=[types.Part(text=m.content)])
        for m in turns
    ]


def build_sdk_config(system: Optional[str], options: RequestOptions) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        system_instruction=system,
        max_output_tokens=options.max_tokens,
        temperature=options.temperature,
    )


def build_rest_payload(
    turns: Sequence[ConversationMessage],
    system: Optional[str],
    options: Optional[RequestOptions] = None,
) -> Dict[str, Any]:
    """Build a generateContent JSON body for the REST endpoint."""
    payload: Dict[str, Any] = {
        "contents": [
            {"role": _gemini_role(m.role), "parts": [{"text": m.content}]}
            for m in turns
        ],
    }
    if options is not None:
        payload["generationConfig"] = {
            "maxOutputTokens": options.max_tokens,
            "temperature": options.temperature,
        }
    if system:
        payload["systemInstruction"] = {"parts": [{"text": system}]}
    return payload
