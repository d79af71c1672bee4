"""Options store: default overlay, change detection and write-back.

The store holds only values that differ from the defaults.  Reads
overlay those on a copy of the defaults; writes that change the
effective value are persisted after a quiescence delay and reported to
subscribers as one ordered batch.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

from pyoptions._changes import ChangeAccumulator
from pyoptions._gate import InitGate
from pyoptions._hooks import HookRegistry, OptionsHook
from pyoptions._paths import KeyPath, deep_equal, ensure_list, join_keys, normalize_keys, object_get, object_set
from pyoptions._redact import redact_for_log
from pyoptions._writer import PersistenceWriter
from pyoptions.config import OptionsConfig
from pyoptions.defaults import DEFAULT_MIGRATIONS, DEFAULT_OPTIONS, OBSOLETE_KEYS, VERSION_KEY
from pyoptions.exceptions import OptionsStateError, OptionsStorageError
from pyoptions.models import MigrationRule, OptionEntry
from pyoptions.storage import MemoryStorage, OptionsStorage

_logger = logging.getLogger(__name__)


def _log_delivery_failure(future: asyncio.Future[Any]) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        _logger.warning("Initial options delivery failed", exc_info=exc)


class OptionsStore:
    """Persisted options with deferred write-back and batched hooks.

    Usage::

        store = OptionsStore(storage=JsonFileStorage("options.json"))
        await store.initialize()
        store.set_option("editor.tabSize", 4)
        store.get_option("editor")  # {"tabSize": 4, ...}

    Writes issued before :meth:`initialize` (or :meth:`load`) are queued
    and replayed in call order once the persisted snapshot is merged.
    """

    def __init__(
        self,
        defaults: Mapping[str, Any] = DEFAULT_OPTIONS,
        *,
        storage: OptionsStorage | None = None,
        config: OptionsConfig | None = None,
        migrations: Iterable[MigrationRule] = DEFAULT_MIGRATIONS,
        obsolete_keys: Iterable[str] = OBSOLETE_KEYS,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._config = config or OptionsConfig()
        self._defaults: Mapping[str, Any] = MappingProxyType(copy.deepcopy(dict(defaults)))
        self._options: dict[str, Any] = {}
        self._storage: OptionsStorage = storage if storage is not None else MemoryStorage()
        self._migrations = tuple(migrations)
        self._obsolete_keys = frozenset(obsolete_keys)
        self._loaded = False

        self._hooks = HookRegistry()
        self._changes = ChangeAccumulator(self._hooks, self._config.delay, loop=loop)
        self._writer = PersistenceWriter(
            self._storage,
            self._config.storage_key,
            lambda: self._options,
            self._config.delay,
            loop=loop,
        )
        self._gate = InitGate(loop=loop)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def config(self) -> OptionsConfig:
        return self._config

    @property
    def is_ready(self) -> bool:
        """Whether the persisted snapshot has been merged."""
        return self._gate.is_ready

    @property
    def options(self) -> dict[str, Any]:
        """Copy of the stored (non-default) values."""
        return copy.deepcopy(self._options)

    @property
    def defaults(self) -> dict[str, Any]:
        return copy.deepcopy(dict(self._defaults))

    @property
    def pending_changes(self) -> dict[str, Any]:
        """Changes recorded but not yet delivered to hooks."""
        return self._changes.pending

    def _trace(self, message: str, *args: Any) -> None:
        if self._config.debug:
            _logger.debug(message, *args)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_option(self, key: KeyPath) -> Any:
        """Return the effective value at *key*.

        A default is returned as a fresh deep copy; a stored value is
        returned as is.  A path that does not exist yields ``None``.
        """
        if isinstance(key, str):
            literal = self._options.get(key)
            if literal is not None:
                return literal
        keys = normalize_keys(key)
        if not keys:
            self._trace("Empty option key")
            return None
        main_key = keys[0]
        if main_key not in self._defaults and main_key not in self._options:
            self._trace("Unknown option read: %s", join_keys(keys))
            return None
        if main_key in self._options:
            value = self._options[main_key]
        else:
            value = copy.deepcopy(self._defaults.get(main_key))
        return object_get(value, keys[1:]) if len(keys) > 1 else value

    def effective_snapshot(self) -> dict[str, Any]:
        """All defaults overlaid with stored values, as an independent copy."""
        snapshot = copy.deepcopy(dict(self._defaults))
        snapshot.update(copy.deepcopy(self._options))
        return snapshot

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_option(self, key: KeyPath, value: Any, silent: bool = False) -> asyncio.Future[Any] | None:
        """Set *key* to *value* if that changes its effective value.

        Parameters
        ----------
        key : str or sequence of str
            ``"a.b.c"`` sets inside the existing ``a`` tree.
        value : Any
            JSON value; the store keeps its own deep copy.
        silent : bool
            Record the change without scheduling a hook flush.  The
            caller is expected to call :meth:`flush_changes` itself.

        Returns
        -------
        asyncio.Future or None
            While loading, a future that settles when the queued call has
            been replayed.  Otherwise ``None``.
        """
        if not self._gate.is_ready:
            return self._gate.defer(self.set_option, key, value, silent)

        keys = normalize_keys(key)
        if not keys:
            self._trace("Empty option key")
            return None
        main_key = keys[0]
        dotted = join_keys(keys)
        if main_key not in self._defaults:
            self._trace("Unknown option: %s=%s", dotted, redact_for_log(value, key=dotted))
            return None

        sub_keys = keys[1:]
        main_value = self.get_option([main_key])
        current = object_get(main_value, sub_keys) if sub_keys else main_value
        if deep_equal(value, current):
            self._trace("Option unchanged: %s", dotted)
            return None

        value = copy.deepcopy(value)
        self._options[main_key] = object_set(main_value, sub_keys, value) if sub_keys else value
        self._omit_default(main_key)
        self._writer.schedule()
        self._changes.add(dotted, value, silent=silent)
        self._trace("Option updated: %s=%s", dotted, redact_for_log(value, key=dotted))
        return None

    def _omit_default(self, key: str) -> bool:
        if key in self._options and key in self._defaults and deep_equal(self._options[key], self._defaults[key]):
            del self._options[key]
            return True
        return False

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def hook(self, callback: OptionsHook) -> Callable[[], None]:
        """Subscribe to change batches; ``callback(changes)``.

        Returns a function that unsubscribes.
        """
        return self._hooks.hook(callback)

    def hook_init(self, callback: OptionsHook) -> Callable[[], None]:
        """Subscribe and also receive the full option set once ready.

        The first call is ``callback(snapshot, True)``; later batches
        arrive as ``callback(changes)``, so *callback* must accept an
        optional second argument.
        """
        if self._gate.is_ready:
            self._deliver_initial(callback)
        else:
            delivery = self._gate.defer(self._deliver_initial, callback)
            delivery.add_done_callback(_log_delivery_failure)
        return self._hooks.hook(callback)

    def _deliver_initial(self, callback: OptionsHook) -> None:
        callback(self.effective_snapshot(), True)

    def flush_changes(self) -> None:
        """Deliver pending changes to hooks now.

        Raises
        ------
        HookError
            A subscriber failed.  The changes stay applied.
        """
        self._changes.flush()

    # ------------------------------------------------------------------
    # Command surface
    # ------------------------------------------------------------------

    def get_all_options(self) -> dict[str, Any]:
        return self.effective_snapshot()

    def set_options(self, entries: Any) -> None:
        """Apply one ``{key, value, reply}`` record or a list of them.

        Hooks are flushed once afterwards; a hook failure propagates to
        the caller as :class:`~pyoptions.exceptions.HookError`.
        """
        records = [
            raw if isinstance(raw, OptionEntry) else OptionEntry.model_validate(raw) for raw in ensure_list(entries)
        ]
        for entry in records:
            self.set_option(entry.key, entry.value, entry.reply)
        self.flush_changes()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self, snapshot: Mapping[str, Any] | None) -> None:
        """Merge the persisted *snapshot* and open the write gate.

        Must run inside the event loop (or with ``loop=`` passed to the
        store): the version bootstrap and the normalizing write schedule
        timers on it.
        """
        if self._loaded:
            raise OptionsStateError("Options are already loaded")
        if snapshot is not None and not isinstance(snapshot, Mapping):
            raise OptionsStorageError(
                f"Stored options must be a mapping, got {type(snapshot).__name__}",
                key=self._config.storage_key,
            )
        self._loaded = True
        if snapshot:
            self._options.update(copy.deepcopy(dict(snapshot)))
        self._trace("Options loaded: %s", redact_for_log(self._options))

        dirty = False
        for key in self._obsolete_keys:
            if key in self._options:
                del self._options[key]
                dirty = True
        for rule in self._migrations:
            if (
                rule.key in self._options
                and rule.key in self._defaults
                and deep_equal(self._options[rule.key], rule.legacy)
            ):
                # Stripped below as a default value.
                self._options[rule.key] = copy.deepcopy(self._defaults[rule.key])
        stripped = [key for key in list(self._options) if self._omit_default(key)]
        if stripped or dirty:
            self._trace("Normalizing stored options, stripped=%s", stripped)
            self._writer.schedule()

        self._gate.open()
        if not self._options.get(VERSION_KEY):
            self.set_option(VERSION_KEY, 1)

    async def initialize(self) -> None:
        """Read the persisted snapshot from storage and :meth:`load` it."""
        snapshot = await self._storage.get_one(self._config.storage_key)
        self.load(snapshot)

    async def wait_ready(self) -> None:
        await self._gate.wait_ready()

    async def aclose(self) -> None:
        """Deliver pending changes and write pending options immediately."""
        try:
            self._changes.flush()
        finally:
            if self._writer.scheduled:
                await self._writer.write_now()
            await self._writer.wait_idle()
