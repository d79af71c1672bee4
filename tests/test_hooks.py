from __future__ import annotations

from typing import Any

import pytest

from pyoptions._hooks import HookRegistry
from pyoptions.exceptions import HookError


def test_fire_calls_hooks_in_registration_order() -> None:
    registry = HookRegistry()
    calls: list[tuple[str, dict[str, Any]]] = []
    registry.hook(lambda changes: calls.append(("first", changes)))
    registry.hook(lambda changes: calls.append(("second", changes)))

    registry.fire({"a": 1})

    assert calls == [("first", {"a": 1}), ("second", {"a": 1})]


def test_unhook_removes_only_that_subscriber() -> None:
    registry = HookRegistry()
    seen: list[str] = []
    unhook = registry.hook(lambda _changes: seen.append("gone"))
    registry.hook(lambda _changes: seen.append("kept"))

    unhook()
    unhook()
    registry.fire({})

    assert seen == ["kept"]
    assert len(registry) == 1


def test_first_failing_hook_stops_dispatch() -> None:
    registry = HookRegistry()
    seen: list[str] = []

    def broken(_changes: dict[str, Any]) -> None:
        raise RuntimeError("boom")

    registry.hook(broken)
    registry.hook(lambda _changes: seen.append("late"))

    with pytest.raises(HookError) as exc_info:
        registry.fire({"a": 1})

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert exc_info.value.changes == {"a": 1}
    assert exc_info.value.hook is broken
    assert seen == []
