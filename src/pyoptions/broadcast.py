"""Change broadcast over MQTT.

The owning store publishes every flushed change batch as an
``UpdateOptions`` message; other processes subscribe to the same topic
and feed the messages into an :class:`~pyoptions.mirror.OptionsMirror`.
"""

from __future__ import annotations

import asyncio
import json
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, cast

import paho.mqtt.client as mqtt

from pyoptions.config import BroadcastSettings, OptionsConfig
from pyoptions.exceptions import OptionsBroadcastError

if TYPE_CHECKING:
    from pyoptions.store import OptionsStore

UPDATE_OPTIONS = "UpdateOptions"


@dataclass(frozen=True)
class BroadcastMessage:
    """Decoded broadcast envelope."""

    cmd: str
    data: Any
    origin: str = ""


def encode_message(cmd: str, data: Any, *, origin: str = "") -> bytes:
    return json.dumps({"cmd": cmd, "data": data, "origin": origin}, separators=(",", ":")).encode("utf-8")


def decode_message(payload: bytes) -> BroadcastMessage:
    """Parse a broadcast payload.

    Raises
    ------
    OptionsBroadcastError
        The payload is not a JSON object with a string ``cmd``.
    """
    try:
        parsed = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise OptionsBroadcastError(f"Broadcast payload is not JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise OptionsBroadcastError("Broadcast payload is not a JSON object")
    cmd = parsed.get("cmd")
    if not isinstance(cmd, str) or not cmd:
        raise OptionsBroadcastError("Broadcast payload missing cmd")
    origin = parsed.get("origin")
    return BroadcastMessage(cmd=cmd, data=parsed.get("data"), origin=origin if isinstance(origin, str) else "")


def _default_client_factory(client_id: str) -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
        client_id=client_id,
        protocol=mqtt.MQTTv5,
    )


class MqttBroadcastRuntime:
    """Threaded paho-mqtt runtime that delivers messages onto an asyncio loop.

    Messages published by this runtime are recognised by their origin and
    not delivered back to it.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        settings: BroadcastSettings,
        on_message: Callable[[BroadcastMessage], None] | None = None,
        logger: logging.Logger | None = None,
        client_factory: Callable[[str], mqtt.Client] = _default_client_factory,
    ) -> None:
        self._loop = loop
        self._settings = settings
        self._on_message = on_message
        self._logger = logger or logging.getLogger(__name__)
        self._client_factory = client_factory
        self._client_id = settings.client_id or f"pyoptions-{secrets.token_hex(4)}"
        self._client: mqtt.Client | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def client_id(self) -> str:
        return self._client_id

    def start(self) -> None:
        """Connect to the broker and subscribe to the broadcast topic."""
        self.stop()
        settings = self._settings
        self._logger.debug(
            "Broadcast runtime start requested host=%s port=%s topic=%s client_id=%s",
            settings.host,
            settings.port,
            settings.topic,
            self._client_id,
        )

        client = self._client_factory(self._client_id)
        client.enable_logger(self._logger)
        if settings.username is not None:
            client.username_pw_set(settings.username, settings.password)
        if settings.tls:
            client.tls_set()

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("Broadcast connect failed: %s", reason_code)
                return
            self._logger.debug("Broadcast connected, subscribing topic=%s", settings.topic)
            c.subscribe(settings.topic, qos=1)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            self._handle_payload(msg.payload)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("Broadcast disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(settings.host, settings.port, keepalive=settings.keepalive)
        client.loop_start()

        self._client = client
        self._running = True

    def _handle_payload(self, payload: bytes) -> None:
        """Decode on the network thread, deliver on the loop."""
        try:
            message = decode_message(payload)
        except OptionsBroadcastError:
            self._logger.debug("Dropping malformed broadcast payload", exc_info=True)
            return
        if message.origin == self._client_id or self._on_message is None:
            return
        self._loop.call_soon_threadsafe(self._on_message, message)

    def publish(self, cmd: str, data: Any) -> None:
        client = self._client
        if client is None or not self._running:
            raise OptionsBroadcastError("Broadcast runtime is not running")
        client.publish(self._settings.topic, encode_message(cmd, data, origin=self._client_id), qos=1)

    def stop(self) -> None:
        """Disconnect the current client, if any."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("Broadcast network loop stopped")


def forward_changes(publish: Callable[[str, Any], None]) -> Callable[[dict[str, Any]], None]:
    """Build a store hook that sends every flushed batch as ``UpdateOptions``."""

    def forward(changes: dict[str, Any]) -> None:
        publish(UPDATE_OPTIONS, changes)

    return forward


async def start_broadcast(
    store: OptionsStore,
    config: OptionsConfig | None = None,
    *,
    on_message: Callable[[BroadcastMessage], None] | None = None,
) -> MqttBroadcastRuntime | None:
    """Start the MQTT runtime and hook it into *store*.

    Returns ``None`` when broadcasting is disabled in the configuration.
    """
    config = config or store.config
    if not config.broadcast_enabled:
        return None
    loop = asyncio.get_running_loop()
    runtime = MqttBroadcastRuntime(loop=loop, settings=config.broadcast, on_message=on_message)
    await loop.run_in_executor(None, runtime.start)
    store.hook(forward_changes(runtime.publish))
    return runtime
