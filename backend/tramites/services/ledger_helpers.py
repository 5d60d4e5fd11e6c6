"""Ledger Helpers — deadlines, shielded commits and fire-and-forget collaborator calls.

Invariants:
    - A Deadline is shared by every awaited step of one operation (lock wait,
      reads, gateway, refund); expiry raises OperationTimeoutError
    - Steps under a deadline never write; writes happen in commit(), after the
      last deadline-bound step, shielded from cancellation
    - fire_and_forget logs collaborator failures and never raises them
      (CancelledError still propagates)
"""

import asyncio
import logging
from collections.abc import Awaitable
from contextlib import AbstractAsyncContextManager, AsyncExitStack, asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, TypeVar

from tramites.core.errors import OperationTimeoutError

logger = logging.getLogger(__name__)

R = TypeVar("R")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Deadline:
    """Time budget for one operation, measured on the running loop's clock."""

    def __init__(self, operation: str, timeout: float | None):
        self.operation = operation
        self.timeout = timeout
        self._expires_at = (
            None if timeout is None
            else asyncio.get_running_loop().time() + timeout
        )

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(self._expires_at - asyncio.get_running_loop().time(), 0.0)

    async def run(self, awaitable: Awaitable[R]) -> R:
        try:
            return await asyncio.wait_for(awaitable, self.remaining())
        except asyncio.TimeoutError:
            logger.warning(
                f"{self.operation} timed out after {self.timeout}s",
                extra={"operation": self.operation},
            )
            raise OperationTimeoutError(self.operation, self.timeout) from None

    @asynccontextmanager
    async def hold(self, lock: AbstractAsyncContextManager[None]) -> AsyncIterator[None]:
        """Acquire a repository lock within the remaining budget."""
        async with AsyncExitStack() as stack:
            await self.run(stack.enter_async_context(lock))
            yield


async def commit(*writes: Awaitable[None]) -> None:
    """Run the writes of one operation in order, shielded from cancellation."""
    async def _apply():
        for write in writes:
            await write
    await asyncio.shield(_apply())


async def fire_and_forget(
    call: Awaitable[None], what: str, timeout: float | None = None, **extra,
) -> None:
    """Await a collaborator call; log and drop any failure."""
    try:
        await asyncio.wait_for(call, timeout)
    except asyncio.TimeoutError:
        logger.warning(f"{what} timed out after {timeout}s", extra=extra)
    except Exception:
        logger.warning(f"{what} failed", exc_info=True, extra=extra)
