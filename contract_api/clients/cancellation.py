"""
Cooperative cancellation for in-flight calls.

A CancellationToken is created by the caller and passed to ``call`` /
``safe_call``. Cancelling it aborts the awaited network work (the task running
the httpx request or the resolver is cancelled) and the call fails with
RequestAborted.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Awaitable, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestAborted(Exception):
    def __init__(self, reason: Optional[str] = None) -> None:
        super().__init__(reason or "Request aborted")
        self.reason = reason


class CancellationToken:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._reason: Optional[str] = None
        self._waiters: List[Tuple[asyncio.AbstractEventLoop, asyncio.Event]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        """Cancel the token. Safe to call from any thread, more than once."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            self._reason = reason
            waiters = list(self._waiters)
        logger.debug("Cancellation requested: %s", reason or "no reason given")
        for loop, event in waiters:
            if loop.is_closed():
                continue
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is loop:
                event.set()
            else:
                loop.call_soon_threadsafe(event.set)

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RequestAborted(self._reason)

    async def guard(self, work: Awaitable[T]) -> T:
        """
        Await ``work`` unless the token is cancelled first.

        On cancellation the task running ``work`` is cancelled and awaited,
        then RequestAborted is raised.
        """
        task = asyncio.ensure_future(work)
        if self._cancelled:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            self.raise_if_cancelled()

        loop = asyncio.get_running_loop()
        event = asyncio.Event()
        entry = (loop, event)
        with self._lock:
            self._waiters.append(entry)
            already_cancelled = self._cancelled
        if already_cancelled:
            event.set()

        waiter = asyncio.ensure_future(event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()
            with self._lock:
                if entry in self._waiters:
                    self._waiters.remove(entry)

        if task.done():
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        self.raise_if_cancelled()
