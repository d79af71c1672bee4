"""Custom exception hierarchy for pyoptions."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any


class OptionsError(Exception):
    """Base exception for all pyoptions errors."""


class OptionsConfigError(OptionsError):
    """Invalid or missing configuration."""


class OptionsStateError(OptionsError):
    """Operation not valid in the store's current lifecycle state."""


class OptionsStorageError(OptionsError):
    """Backing store could not be read or written."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class OptionsBroadcastError(OptionsError):
    """Malformed change-broadcast message or transport failure."""


class HookError(OptionsError):
    """A change subscriber raised while a batch was being delivered.

    The original exception is chained as ``__cause__``.  The batch is
    already applied to in-memory and persisted state when this is raised;
    only its notification failed.
    """

    def __init__(
        self,
        message: str,
        *,
        changes: dict[str, Any] | None = None,
        hook: Callable[..., Any] | None = None,
    ) -> None:
        self.changes = changes if changes is not None else {}
        self.hook = hook
        super().__init__(message)
