"""Streaming helpers shared by provider adapters.

Adapters expose streams as async iterators of text chunks; these helpers
bridge them to callback-style consumers and buffer non-streaming calls.
"""

from .helpers import deliver_with_callbacks, replay_as_stream

__all__ = [
    "deliver_with_callbacks",
    "replay_as_stream",
]
