"""Read-side options cache for contexts that receive change broadcasts.

A mirror starts from a full snapshot (the ``get_all_options`` result)
and then applies each ``UpdateOptions`` batch, keeping a local copy of
the effective options without talking to the owning store on every read.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from typing import Any

from pyoptions._hooks import HookRegistry, OptionsHook
from pyoptions._paths import KeyPath, normalize_keys, object_get, object_set
from pyoptions.broadcast import UPDATE_OPTIONS, BroadcastMessage

_logger = logging.getLogger(__name__)


class OptionsMirror:
    def __init__(self) -> None:
        self._options: dict[str, Any] = {}
        self._hooks = HookRegistry()
        self._ready = False

    @property
    def is_ready(self) -> bool:
        return self._ready

    def load(self, snapshot: Mapping[str, Any]) -> None:
        self._options = copy.deepcopy(dict(snapshot))
        self._ready = True

    def get(self, key: KeyPath, default: Any = None) -> Any:
        value = object_get(self._options, normalize_keys(key))
        return default if value is None else value

    def update(self, changes: Mapping[str, Any]) -> None:
        """Apply a batch of dotted-key changes, then notify hooks once."""
        for key, value in changes.items():
            object_set(self._options, normalize_keys(key), copy.deepcopy(value))
        self._hooks.fire(dict(changes))

    def hook(self, callback: OptionsHook) -> Callable[[], None]:
        return self._hooks.hook(callback)

    def handle_message(self, message: BroadcastMessage) -> None:
        if message.cmd == UPDATE_OPTIONS:
            if not isinstance(message.data, Mapping):
                _logger.debug("Ignoring %s with non-object data", message.cmd)
                return
            self.update(message.data)
