"""
Base class for client-side stores: immutable state snapshots, subscriptions and the
last-issued-read-wins guard shared by every store's read path.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

from pydantic import BaseModel

from fluxtrack.core.cancellation import CancelToken

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT", bound=BaseModel)
Listener = Callable[[StateT], None]


class Store(Generic[StateT]):
    def __init__(self, initial_state: StateT) -> None:
        self._state = initial_state
        self._listeners: list[Listener] = []
        self._read_seq = 0
        self._read_token: CancelToken | None = None

    @property
    def state(self) -> StateT:
        """Current read-only snapshot."""
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with every new snapshot. Returns a function that unsubscribes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def cancel(self) -> None:
        """Abort the in-flight read, if any. Its result will not reach the state."""
        if self._read_token is not None:
            self._read_token.cancel()

    def _update(self, **changes) -> None:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("%s listener failed", type(self).__name__)

    def _begin_read(self, cancel_token: CancelToken | None = None) -> tuple[int, CancelToken]:
        """Supersede any in-flight read and return (sequence number, token) for the new one.

        The returned token belongs to the store. A caller token only reaches the read through it.
        """
        self.cancel()
        token = cancel_token.child() if cancel_token is not None else CancelToken()
        self._read_seq += 1
        self._read_token = token
        return self._read_seq, token

    def _is_current(self, seq: int, token: CancelToken) -> bool:
        return seq == self._read_seq and not token.cancelled
