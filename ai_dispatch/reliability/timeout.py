"""
Deadline enforcement for awaitables.

The guard stops *waiting* for an operation once the deadline passes but
never cancels it: the operation keeps running in the background and its
eventual outcome is ignored by the caller.
"""

import asyncio
import logging
from typing import Any, Awaitable, Optional, Set, TypeVar

from .errors import OperationTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# Strong references to operations abandoned by a timeout
_abandoned: Set[asyncio.Future] = set()


def _discard_abandoned(task: asyncio.Future) -> None:
    _abandoned.discard(task)
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(
            "Abandoned operation failed after its timeout",
            extra={"error_type": type(error).__name__, "error_msg": str(error)}
        )


def _abandon(task: asyncio.Future) -> None:
    _abandoned.add(task)
    task.add_done_callback(_discard_abandoned)


async def with_timeout(
    operation: Awaitable[T],
    timeout: float,
    message: Optional[str] = None
) -> T:
    """
    Await an operation, failing if it does not settle within ``timeout`` seconds.

    Args:
        operation: Coroutine or future to await
        timeout: Deadline in seconds
        message: Optional error message for the timeout

    Returns:
        The operation's result if it settles first

    Raises:
        OperationTimeoutError: If the deadline passes first
        Exception: The operation's own error, unchanged, if it fails first
    """
    task = asyncio.ensure_future(operation)
    try:
        # asyncio.wait cancels its internal timer once either side settles
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        _abandon(task)
        raise

    if task in done:
        return task.result()

    _abandon(task)
    raise OperationTimeoutError(
        message or f"Operation timed out after {timeout:g}s",
        timeout=timeout
    )


def is_timeout_error(error: Any) -> bool:
    """Check whether an error came from a deadline being exceeded."""
    return isinstance(error, (OperationTimeoutError, asyncio.TimeoutError, TimeoutError))
