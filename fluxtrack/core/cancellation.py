"""
Explicit cancellation tokens for store reads and writes.
A token is passed down to the transport; cancelling it makes the pending call raise RequestCancelled.
"""
from __future__ import annotations

import asyncio
import inspect
import weakref
from collections.abc import Awaitable
from typing import TypeVar

T = TypeVar("T")


class RequestCancelled(Exception):
    """The call was cancelled by its caller. Never shown to the user."""

    def __init__(self, message: str = "request cancelled") -> None:
        super().__init__(message)


class CancelToken:
    """One-shot cancellation handle. Once cancelled it stays cancelled."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._children: weakref.WeakSet[CancelToken] = weakref.WeakSet()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()
        for child in list(self._children):
            child.cancel()

    def child(self) -> CancelToken:
        """New token that is cancelled with this one. Cancelling the child leaves this token alone."""
        token = CancelToken()
        if self.cancelled:
            token.cancel()
        else:
            self._children.add(token)
        return token

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelled()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable` unless the token fires first; then cancel it and raise RequestCancelled."""
        if self.cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise RequestCancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise
        if task in done:
            waiter.cancel()
            return task.result()
        task.cancel()
        # Let the inner call unwind; its outcome is discarded.
        await asyncio.gather(task, return_exceptions=True)
        raise RequestCancelled()
