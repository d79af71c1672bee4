"""Store configuration for pyoptions."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyoptions.exceptions import OptionsConfigError

#: Quiescence delay shared by the change flush and the persistence writer.
DEFAULT_DELAY: float = 0.1

#: Single backend key under which the whole options map is persisted.
DEFAULT_STORAGE_KEY = "options"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class BroadcastSettings:
    """MQTT broker details for the change-broadcast bridge."""

    host: str = "localhost"
    port: int = 1883
    topic: str = "pyoptions/update"
    client_id: str = ""
    username: str | None = None
    password: str | None = None
    keepalive: int = 60
    tls: bool = False


@dataclasses.dataclass(frozen=True)
class OptionsConfig:
    """Options store configuration.

    Parameters
    ----------
    delay : float
        Quiescence delay in seconds.  Both the change-notification flush
        and the persistence write fire only after this long without a
        further change.
    storage_key : str
        Backend key holding the whole options map.
    debug : bool
        Emit DEBUG traces for option reads, writes and rejected keys.
        Has no effect on behavior.
    broadcast_enabled : bool
        Forward flushed change batches over MQTT.
    broadcast : BroadcastSettings
        Broker connection details.
    """

    delay: float = DEFAULT_DELAY
    storage_key: str = DEFAULT_STORAGE_KEY
    debug: bool = False
    broadcast_enabled: bool = False
    broadcast: BroadcastSettings = dataclasses.field(default_factory=BroadcastSettings)

    def __post_init__(self) -> None:
        if self.delay < 0:
            raise OptionsConfigError(f"delay must be >= 0, got {self.delay!r}")
        if not self.storage_key:
            raise OptionsConfigError("storage_key must be non-empty")

    @classmethod
    def from_env(cls, **overrides: Any) -> OptionsConfig:
        """Create configuration from ``PYOPTIONS_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        broadcast_kwargs: dict[str, Any] = {}
        _ENV_BROADCAST_MAP = {
            "PYOPTIONS_MQTT_HOST": "host",
            "PYOPTIONS_MQTT_TOPIC": "topic",
            "PYOPTIONS_MQTT_CLIENT_ID": "client_id",
            "PYOPTIONS_MQTT_USERNAME": "username",
            "PYOPTIONS_MQTT_PASSWORD": "password",
        }
        for env_key, field_name in _ENV_BROADCAST_MAP.items():
            val = env.get(env_key)
            if val is not None:
                broadcast_kwargs[field_name] = val

        port_env = env.get("PYOPTIONS_MQTT_PORT")
        if port_env is not None:
            broadcast_kwargs["port"] = int(port_env)
        keepalive_env = env.get("PYOPTIONS_MQTT_KEEPALIVE")
        if keepalive_env is not None:
            broadcast_kwargs["keepalive"] = int(keepalive_env)
        tls_env = env.get("PYOPTIONS_MQTT_TLS")
        if tls_env is not None:
            broadcast_kwargs["tls"] = _env_bool(tls_env, False)

        broadcast_overrides = overrides.pop("broadcast", None)
        if isinstance(broadcast_overrides, dict):
            broadcast_kwargs.update(broadcast_overrides)
        elif isinstance(broadcast_overrides, BroadcastSettings):
            broadcast_kwargs = dataclasses.asdict(broadcast_overrides)

        config_kwargs: dict[str, Any] = {"broadcast": BroadcastSettings(**broadcast_kwargs)}

        delay_env = env.get("PYOPTIONS_DELAY")
        if delay_env is not None and "delay" not in overrides:
            config_kwargs["delay"] = float(delay_env)

        storage_key_env = env.get("PYOPTIONS_STORAGE_KEY")
        if storage_key_env is not None:
            config_kwargs["storage_key"] = storage_key_env

        if "debug" not in overrides:
            config_kwargs["debug"] = _env_bool(env.get("PYOPTIONS_DEBUG"), False)

        if "broadcast_enabled" not in overrides:
            config_kwargs["broadcast_enabled"] = _env_bool(env.get("PYOPTIONS_BROADCAST_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
