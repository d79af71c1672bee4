"""pyoptions - Async hierarchical options store with debounced persistence."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyoptions")
except PackageNotFoundError:
    __version__ = "0+local"
from pyoptions.broadcast import (
    UPDATE_OPTIONS,
    BroadcastMessage,
    MqttBroadcastRuntime,
    decode_message,
    encode_message,
    forward_changes,
    start_broadcast,
)
from pyoptions.config import BroadcastSettings, OptionsConfig
from pyoptions.defaults import DEFAULT_MIGRATIONS, DEFAULT_OPTIONS, OBSOLETE_KEYS, VERSION_KEY
from pyoptions.exceptions import (
    HookError,
    OptionsBroadcastError,
    OptionsConfigError,
    OptionsError,
    OptionsStateError,
    OptionsStorageError,
)
from pyoptions.mirror import OptionsMirror
from pyoptions.models import MigrationRule, OptionEntry
from pyoptions.storage import JsonFileStorage, MemoryStorage, OptionsStorage
from pyoptions.store import OptionsStore

__all__ = [
    "__version__",
    "BroadcastMessage",
    "BroadcastSettings",
    "DEFAULT_MIGRATIONS",
    "DEFAULT_OPTIONS",
    "HookError",
    "JsonFileStorage",
    "MemoryStorage",
    "MigrationRule",
    "MqttBroadcastRuntime",
    "OBSOLETE_KEYS",
    "OptionEntry",
    "OptionsBroadcastError",
    "OptionsConfig",
    "OptionsConfigError",
    "OptionsError",
    "OptionsMirror",
    "OptionsStateError",
    "OptionsStorage",
    "OptionsStorageError",
    "OptionsStore",
    "UPDATE_OPTIONS",
    "VERSION_KEY",
    "decode_message",
    "encode_message",
    "forward_changes",
    "start_broadcast",
]
