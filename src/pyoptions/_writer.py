"""Debounced write-back of the options map."""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Callable
from typing import Any

from pyoptions._debounce import Debouncer
from pyoptions.storage import OptionsStorage

_logger = logging.getLogger(__name__)


class PersistenceWriter:
    """Coalesce a burst of mutations into one write of the full map.

    Writes are fire-and-forget: a failing backend is logged and not
    retried, and the in-memory map is left as it is.
    """

    def __init__(
        self,
        storage: OptionsStorage,
        storage_key: str,
        snapshot: Callable[[], dict[str, Any]],
        delay: float,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._storage = storage
        self._storage_key = storage_key
        self._snapshot = snapshot
        self._loop = loop
        self._tasks: set[asyncio.Task[None]] = set()
        self._write_later = Debouncer(self._start_write, delay, loop=loop)

    @property
    def scheduled(self) -> bool:
        """Whether a write is waiting for the quiescence delay."""
        return self._write_later.pending

    def schedule(self) -> None:
        self._write_later()

    def _start_write(self) -> None:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._write(copy.deepcopy(self._snapshot())))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _write(self, options: dict[str, Any]) -> None:
        try:
            await self._storage.set_one(self._storage_key, options)
        except Exception:
            _logger.warning("Writing options to storage failed", exc_info=True)

    async def write_now(self) -> None:
        """Skip the remaining delay and write the current map.

        Writes already handed to the backend finish first, so this one is
        always the last.
        """
        self._write_later.cancel()
        await self.wait_idle()
        await self._write(copy.deepcopy(self._snapshot()))

    async def wait_idle(self) -> None:
        """Wait for writes already handed to the backend."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
