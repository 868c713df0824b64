"""MQTT subscription feeding telemetry into the ingestion pipeline."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional

import paho.mqtt.client as mqtt

from settings import get_settings

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str, bytes], object]

CONNECT_TIMEOUT_SECONDS = 5.0
WEBSOCKET_PATH = "/mqtt"


class ConnectionConfigError(ValueError):
    """Broker, port or topic given to the subscriber is unusable."""


@dataclass(frozen=True)
class ConnectionConfig:
    broker: str
    port: int
    topic: str
    transport: str = "websockets"
    tls: bool = True


def validate_connection(broker: str, port: object, topic: str) -> ConnectionConfig:
    """Check user supplied connection parameters and normalise them."""
    if not broker or not broker.strip():
        raise ConnectionConfigError("Broker must not be empty.")
    try:
        port_number = int(str(port).strip())
    except ValueError:
        raise ConnectionConfigError("Port must be a number between 1 and 65535.") from None
    if not 1 <= port_number <= 65535:
        raise ConnectionConfigError("Port must be a number between 1 and 65535.")
    if not topic or not topic.strip():
        raise ConnectionConfigError("Topic must not be empty.")
    return ConnectionConfig(broker=broker.strip(), port=port_number, topic=topic.strip())


class TelemetrySubscriber:
    """Owns one MQTT session and hands every message to ``handler``.

    paho dispatches callbacks on its single network thread, so messages reach
    the handler one at a time in arrival order.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        handler: MessageHandler,
        client_id: str = "house-monitor",
    ) -> None:
        self.config = config
        self._handler = handler
        self.client_id = f"{client_id}-{int(time.time())}"
        self._client: Optional[mqtt.Client] = None
        self._connected = threading.Event()

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()

    def connect(self, timeout: float = CONNECT_TIMEOUT_SECONDS) -> bool:
        """Connect, subscribe and start the network loop; False when it fails."""
        client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            transport=self.config.transport,
        )
        client.enable_logger()
        if self.config.transport == "websockets":
            client.ws_set_options(path=WEBSOCKET_PATH)
        if self.config.tls:
            client.tls_set()
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        self._client = client

        logger.info("Connecting to %s:%d", self.config.broker, self.config.port)
        try:
            client.connect(self.config.broker, self.config.port, keepalive=60)
        except (OSError, ValueError) as exc:
            logger.error("Connection to broker failed: %s", exc, extra={"error": exc})
            self._client = None
            return False
        client.loop_start()

        if self._connected.wait(timeout):
            return True

        logger.error("Timed out connecting to %s:%d", self.config.broker, self.config.port)
        self.disconnect()
        return False

    def disconnect(self) -> None:
        client = self._client
        self._client = None
        self._connected.clear()
        if client is None:
            return
        client.disconnect()
        client.loop_stop()
        logger.info("Disconnected from %s:%d", self.config.broker, self.config.port)

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        if reason_code.is_failure:
            logger.error("Broker refused connection: %s", reason_code)
            return
        result, _mid = client.subscribe(self.config.topic, qos=0)
        if result != mqtt.MQTT_ERR_SUCCESS:
            logger.error(
                "Subscribing to telemetry failed: %s",
                mqtt.error_string(result),
                extra={"topic": self.config.topic},
            )
            return
        self._connected.set()
        logger.info("Subscribed to telemetry", extra={"topic": self.config.topic})

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None) -> None:
        self._connected.clear()
        logger.warning("Disconnected from broker: %s", reason_code)

    def _on_message(self, client, userdata, message) -> None:
        self._handler(message.topic, message.payload)


def build_default_subscriber(handler: MessageHandler) -> TelemetrySubscriber:
    settings = get_settings()
    config = replace(
        validate_connection(settings.mqtt_broker, settings.mqtt_port, settings.mqtt_topic),
        transport=settings.mqtt_transport,
        tls=settings.mqtt_tls,
    )
    return TelemetrySubscriber(config=config, handler=handler)
