"""
Streaming callback models.

Streams are consumed as async iterators of text chunks; ``StreamCallbacks``
is the push-style view of the same stream for callers that prefer hooks.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

TokenCallback = Callable[[str], Union[None, Awaitable[None]]]
CompleteCallback = Callable[[str], Union[None, Awaitable[None]]]
ErrorCallback = Callable[[BaseException], Union[None, Awaitable[None]]]


@dataclass
class StreamCallbacks:
    """
    Hooks invoked while a stream is delivered.

    Each hook may be a plain function or a coroutine function.
    """

    on_token: Optional[TokenCallback] = None
    """Called with every text chunk, in order."""

    on_complete: Optional[CompleteCallback] = None
    """Called once with the full concatenated text."""

    on_error: Optional[ErrorCallback] = None
    """Called with the error before it propagates to the caller."""
