"""Pending change batch with debounced delivery."""

from __future__ import annotations

import asyncio
import copy
from typing import Any

from pyoptions._debounce import Debouncer
from pyoptions._hooks import HookRegistry


class ChangeAccumulator:
    """Collect changed keys and hand them to the hooks as one batch.

    Pending changes are keyed by the full dotted key.  Re-setting a key
    that is already pending moves it to the end, so a batch lists keys in
    most-recent-write order.
    """

    def __init__(
        self,
        hooks: HookRegistry,
        delay: float,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._hooks = hooks
        self._changes: dict[str, Any] | None = None
        self._flush_later = Debouncer(self.flush, delay, loop=loop)

    @property
    def pending(self) -> dict[str, Any]:
        return dict(self._changes) if self._changes else {}

    def add(self, key: str, value: Any, *, silent: bool = False) -> None:
        if self._changes is None:
            self._changes = {}
        else:
            self._changes.pop(key, None)
        self._changes[key] = copy.deepcopy(value)
        if not silent:
            self._flush_later()

    def flush(self) -> None:
        """Deliver the pending batch now.

        Raises
        ------
        HookError
            A subscriber failed.  The batch is consumed regardless.
        """
        # A timer may still fire after an explicit flush emptied the batch.
        if self._changes is None:
            return
        batch = self._changes
        self._changes = None
        self._hooks.fire(batch)
