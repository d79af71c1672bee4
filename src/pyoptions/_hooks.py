"""Change subscriber registry."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pyoptions.exceptions import HookError

OptionsHook = Callable[..., Any]


class HookRegistry:
    """Ordered list of subscribers, each called once per fired batch."""

    def __init__(self) -> None:
        self._hooks: list[OptionsHook] = []

    def __len__(self) -> int:
        return len(self._hooks)

    def hook(self, callback: OptionsHook) -> Callable[[], None]:
        """Register *callback* and return a function that removes it."""
        self._hooks.append(callback)

        def unhook() -> None:
            try:
                self._hooks.remove(callback)
            except ValueError:
                pass

        return unhook

    def fire(self, *args: Any) -> None:
        """Call every subscriber with *args*.

        Dispatch stops at the first subscriber that raises; that failure
        is re-raised as :class:`HookError`.
        """
        for callback in list(self._hooks):
            try:
                callback(*args)
            except Exception as exc:
                changes = args[0] if args and isinstance(args[0], dict) else None
                raise HookError(
                    f"Options hook {callback!r} failed: {exc}",
                    changes=changes,
                    hook=callback,
                ) from exc
