from __future__ import annotations

import asyncio
import logging
from typing import Any

import pytest

from pyoptions.config import OptionsConfig
from pyoptions.storage import MemoryStorage
from pyoptions.store import OptionsStore

_DELAY = 0.01

DEFAULTS: dict[str, Any] = {
    "version": 0,
    "a": {"b": 1, "c": 2},
    "flag": False,
    "name": "x",
    "tags": ["one"],
}


def _ready_store(storage: MemoryStorage | None = None) -> tuple[OptionsStore, MemoryStorage]:
    storage = storage or MemoryStorage()
    store = OptionsStore(
        DEFAULTS,
        storage=storage,
        config=OptionsConfig(delay=_DELAY),
        migrations=(),
        obsolete_keys=(),
    )
    # A stored version skips the first-run bootstrap write.
    store.load({"version": 1})
    return store, storage


async def _settle(store: OptionsStore) -> None:
    await asyncio.sleep(_DELAY * 5)
    await store._writer.wait_idle()  # noqa: SLF001


@pytest.mark.asyncio
async def test_setting_same_value_twice_writes_and_notifies_once() -> None:
    store, storage = _ready_store()
    batches: list[dict[str, Any]] = []
    store.hook(batches.append)

    store.set_option("name", "y")
    store.set_option("name", "y")
    await _settle(store)

    assert len(storage.writes) == 1
    assert batches == [{"name": "y"}]


@pytest.mark.asyncio
async def test_setting_effective_default_is_a_no_op() -> None:
    store, storage = _ready_store()
    batches: list[dict[str, Any]] = []
    store.hook(batches.append)

    store.set_option("a.c", 2)
    store.set_option("flag", False)
    await _settle(store)

    assert storage.writes == []
    assert batches == []


@pytest.mark.asyncio
async def test_value_equal_to_default_is_stripped() -> None:
    store, storage = _ready_store()

    store.set_option("a.b", 5)
    assert store.options["a"] == {"b": 5, "c": 2}

    store.set_option("a", {"b": 1, "c": 2})
    assert "a" not in store.options
    assert store.get_option("a") == {"b": 1, "c": 2}

    await _settle(store)
    assert storage.writes == [("options", {"version": 1})]


@pytest.mark.asyncio
async def test_nested_set_keeps_siblings() -> None:
    store, _ = _ready_store()

    store.set_option("a.b", 5)

    assert store.get_option("a.b") == 5
    assert store.get_option("a.c") == 2
    assert store.get_option(["a", "b"]) == 5


@pytest.mark.asyncio
async def test_batch_collects_changes_in_last_write_order() -> None:
    store, storage = _ready_store()
    batches: list[dict[str, Any]] = []
    store.hook(batches.append)

    store.set_option("name", "first")
    store.set_option("flag", True)
    store.set_option("a.b", 7)
    store.set_option("name", "last")
    await _settle(store)

    assert len(batches) == 1
    assert list(batches[0].items()) == [("flag", True), ("a.b", 7), ("name", "last")]
    assert len(storage.writes) == 1

    store.set_option("tags", ["one", "two"])
    await _settle(store)

    assert batches[1] == {"tags": ["one", "two"]}
    assert len(storage.writes) == 2


@pytest.mark.asyncio
async def test_unknown_key_changes_nothing() -> None:
    store, storage = _ready_store()
    batches: list[dict[str, Any]] = []
    store.hook(batches.append)
    before = store.options

    store.set_option("doesNotExist", 1)
    store.set_option("doesNotExist.deep", 1)

    assert store.options == before
    assert store.pending_changes == {}
    await _settle(store)
    assert batches == []
    assert storage.writes == []
    assert store.get_option("doesNotExist") is None


@pytest.mark.asyncio
async def test_unknown_key_is_traced_in_debug_mode(caplog: pytest.LogCaptureFixture) -> None:
    store = OptionsStore(DEFAULTS, config=OptionsConfig(delay=_DELAY, debug=True), migrations=(), obsolete_keys=())
    store.load({"version": 1})

    with caplog.at_level(logging.DEBUG, logger="pyoptions.store"):
        store.set_option("doesNotExist", 1)

    assert "Unknown option: doesNotExist" in caplog.text


@pytest.mark.asyncio
async def test_default_reads_return_independent_copies() -> None:
    store, _ = _ready_store()

    value = store.get_option("a")
    value["b"] = 99

    assert store.get_option("a.b") == 1
    assert store.defaults["a"] == {"b": 1, "c": 2}


@pytest.mark.asyncio
async def test_store_keeps_its_own_copy_of_set_values() -> None:
    store, _ = _ready_store()
    value = {"b": 7, "c": 2}

    store.set_option("a", value)
    value["b"] = 0

    assert store.get_option("a.b") == 7


@pytest.mark.asyncio
async def test_missing_sub_path_reads_as_none() -> None:
    store, _ = _ready_store()

    assert store.get_option("a.missing") is None
    assert store.get_option("a.b.deeper") is None


@pytest.mark.asyncio
async def test_bool_and_int_are_distinct_values() -> None:
    store, _ = _ready_store()

    store.set_option("flag", 0)

    assert store.options["flag"] == 0
    assert store.options["flag"] is not False


@pytest.mark.asyncio
async def test_silent_change_waits_for_explicit_flush() -> None:
    store, _ = _ready_store()
    batches: list[dict[str, Any]] = []
    store.hook(batches.append)

    store.set_option("name", "quiet", silent=True)
    await _settle(store)
    assert batches == []
    assert store.pending_changes == {"name": "quiet"}

    store.flush_changes()
    assert batches == [{"name": "quiet"}]
    assert store.pending_changes == {}


@pytest.mark.asyncio
async def test_unsubscribed_hook_gets_nothing() -> None:
    store, _ = _ready_store()
    batches: list[dict[str, Any]] = []
    unhook = store.hook(batches.append)

    unhook()
    store.set_option("name", "y")
    await _settle(store)

    assert batches == []


class _FailingStorage(MemoryStorage):
    async def set_one(self, key: str, value: Any) -> None:
        raise OSError("disk full")


@pytest.mark.asyncio
async def test_write_failure_is_logged_and_keeps_memory_state(caplog: pytest.LogCaptureFixture) -> None:
    store, _ = _ready_store(_FailingStorage())

    with caplog.at_level(logging.WARNING, logger="pyoptions._writer"):
        store.set_option("name", "kept")
        await _settle(store)

    assert "Writing options to storage failed" in caplog.text
    assert store.get_option("name") == "kept"
    assert store.options == {"version": 1, "name": "kept"}


@pytest.mark.asyncio
async def test_aclose_writes_without_waiting_for_delay() -> None:
    storage = MemoryStorage()
    store = OptionsStore(
        DEFAULTS,
        storage=storage,
        config=OptionsConfig(delay=60.0),
        migrations=(),
        obsolete_keys=(),
    )
    store.load({"version": 1})
    batches: list[dict[str, Any]] = []
    store.hook(batches.append)

    store.set_option("name", "closing")
    await store.aclose()

    assert storage.writes == [("options", {"version": 1, "name": "closing"})]
    assert batches == [{"name": "closing"}]


@pytest.mark.asyncio
async def test_aclose_final_write_is_latest_state() -> None:
    store, storage = _ready_store()

    store.set_option("name", "a")
    # Quiet window ends: a write task exists but has not run yet.
    store._writer._write_later.cancel()  # noqa: SLF001
    store._writer._start_write()  # noqa: SLF001
    store.set_option("name", "b")
    await store.aclose()

    assert storage.writes[-1] == ("options", {"version": 1, "name": "b"})
    assert await storage.get_one("options") == {"version": 1, "name": "b"}


@pytest.mark.asyncio
async def test_empty_key_path_is_unknown() -> None:
    store, storage = _ready_store()

    assert store.get_option([]) is None
    assert store.set_option([], 1) is None

    assert store.options == {"version": 1}
    assert store.pending_changes == {}
    await _settle(store)
    assert storage.writes == []


@pytest.mark.asyncio
async def test_unknown_key_read_is_traced_in_debug_mode(caplog: pytest.LogCaptureFixture) -> None:
    store = OptionsStore(DEFAULTS, config=OptionsConfig(delay=_DELAY, debug=True), migrations=(), obsolete_keys=())
    store.load({"version": 1})

    with caplog.at_level(logging.DEBUG, logger="pyoptions.store"):
        assert store.get_option("doesNotExist.deep") is None

    assert "Unknown option read: doesNotExist.deep" in caplog.text
