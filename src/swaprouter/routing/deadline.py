"""Deadline-bounded execution of provider calls."""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from swaprouter.errors import timeout_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_with_deadline(
    operation: Awaitable[T],
    timeout: Optional[float],
    *,
    provider: Optional[str] = None,
    operation_name: str = "call",
) -> T:
    """Await an operation, cancelling it once the deadline passes.

    Args:
        operation: Coroutine to run
        timeout: Seconds before the operation is abandoned; None disables the deadline
        provider: Provider name recorded in the error detail
        operation_name: Operation label recorded in the error detail

    Raises:
        SwapError: TIMEOUT when the deadline expired
    """
    if timeout is None:
        return await operation

    try:
        return await asyncio.wait_for(operation, timeout=timeout)
    except asyncio.TimeoutError:
        label = f"{provider}.{operation_name}" if provider else operation_name
        logger.warning(f"{label} timed out after {timeout:g}s")
        raise timeout_error(label, timeout, provider=provider) from None
