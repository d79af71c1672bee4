"""Quiescence timer scheduled on the asyncio loop."""

from __future__ import annotations

import asyncio
from collections.abc import Callable


class Debouncer:
    """Call *callback* once no trigger has arrived for *delay* seconds.

    Every ``__call__`` replaces the pending timer, so only the most
    recent trigger decides when the callback runs.  The callback runs
    inside the loop; anything it raises goes to the loop's exception
    handler.
    """

    def __init__(
        self,
        callback: Callable[[], object],
        delay: float,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._callback = callback
        self._delay = delay
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        """Whether a callback is scheduled and has not run yet."""
        return self._handle is not None

    def __call__(self) -> None:
        loop = self._loop or asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self._delay, self._run)

    def cancel(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()

    def _run(self) -> None:
        self._handle = None
        self._callback()
