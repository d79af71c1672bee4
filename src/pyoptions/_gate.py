"""Initialization gate: holds calls until persisted state is loaded."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class _DeferredCall:
    fn: Callable[..., Any]
    args: tuple[Any, ...]
    kwargs: dict[str, Any]
    future: asyncio.Future[Any]


class InitGate:
    """One-way ``Loading -> Ready`` gate.

    While loading, :meth:`defer` queues calls; :meth:`open` replays them
    in the order they were queued and settles each call's future with its
    result or exception.
    """

    def __init__(self, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._ready = asyncio.Event()
        self._queue: deque[_DeferredCall] = deque()

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def __len__(self) -> int:
        return len(self._queue)

    def defer(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> asyncio.Future[Any]:
        loop = self._loop or asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        self._queue.append(_DeferredCall(fn, args, kwargs, future))
        return future

    def open(self) -> None:
        """Mark the gate ready and drain the queue."""
        self._ready.set()
        while self._queue:
            call = self._queue.popleft()
            try:
                result = call.fn(*call.args, **call.kwargs)
            except Exception as exc:
                if not call.future.done():
                    call.future.set_exception(exc)
            else:
                if not call.future.done():
                    call.future.set_result(result)

    async def wait_ready(self) -> None:
        await self._ready.wait()
