from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional, Sequence, Union
from enum import Enum

from ..config.constants import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE


class TurnRole(str, Enum):
    """Conversation turn roles."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ConversationMessage(BaseModel):
    """Message format for AI providers."""

    role: TurnRole
    content: str


class RequestOptions(BaseModel):
    """Per-call generation options."""

    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS)
    temperature: float = Field(default=DEFAULT_TEMPERATURE)

    @field_validator('max_tokens')
    def validate_max_tokens(cls, v):
        return max(v, 1)

    @field_validator('temperature')
    def validate_temperature(cls, v):
        return min(max(v, 0.0), 2.0)

    def merged(self, overrides: Optional[Union["RequestOptions", Dict[str, Any]]]) -> "RequestOptions":
        """Return a copy with the explicitly-set fields of ``overrides`` applied."""
        if overrides is None:
            return self.model_copy()
        if isinstance(overrides, RequestOptions):
            overrides = overrides.model_dump(exclude_unset=True)
        return RequestOptions(**{**self.model_dump(), **overrides})


MessageInput = Union[ConversationMessage, Dict[str, Any]]


def normalize_messages(messages: Sequence[MessageInput]) -> List[ConversationMessage]:
    """Accept messages as models or plain ``{role, content}`` dicts."""
    return [
        m if isinstance(m, ConversationMessage) else ConversationMessage.model_validate(m)
        for m in messages
    ]


def split_system_messages(messages: Sequence[ConversationMessage]):
    """Separate system-role content from the conversational turns, preserving order."""
    system = [m.content for m in messages if m.role == TurnRole.SYSTEM]
    turns = [m for m in messages if m.role != TurnRole.SYSTEM]
    return system, turns
