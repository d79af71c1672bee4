from __future__ import annotations

import asyncio

import pytest

from pyoptions._debounce import Debouncer

_DELAY = 0.05


@pytest.mark.asyncio
async def test_burst_of_triggers_runs_callback_once() -> None:
    calls: list[int] = []
    debounced = Debouncer(lambda: calls.append(1), _DELAY)

    for _ in range(5):
        debounced()
        await asyncio.sleep(_DELAY / 10)
    assert calls == []
    assert debounced.pending

    await asyncio.sleep(_DELAY * 4)
    assert calls == [1]
    assert not debounced.pending


@pytest.mark.asyncio
async def test_trigger_after_quiet_window_runs_again() -> None:
    calls: list[int] = []
    debounced = Debouncer(lambda: calls.append(1), _DELAY)

    debounced()
    await asyncio.sleep(_DELAY * 4)
    debounced()
    await asyncio.sleep(_DELAY * 4)

    assert calls == [1, 1]


@pytest.mark.asyncio
async def test_cancel_drops_scheduled_call() -> None:
    calls: list[int] = []
    debounced = Debouncer(lambda: calls.append(1), _DELAY)

    debounced()
    debounced.cancel()
    await asyncio.sleep(_DELAY * 4)

    assert calls == []
