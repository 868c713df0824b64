from __future__ import annotations

from types import SimpleNamespace
from typing import List, Tuple

import paho.mqtt.client as mqtt
import pytest

from transport.mqtt import (
    ConnectionConfig,
    ConnectionConfigError,
    TelemetrySubscriber,
    validate_connection,
)


class FakeClient:
    def __init__(self, subscribe_result: int = mqtt.MQTT_ERR_SUCCESS) -> None:
        self.subscriptions: List[Tuple[str, int]] = []
        self.calls: List[str] = []
        self.subscribe_result = subscribe_result

    def subscribe(self, topic: str, qos: int = 0) -> Tuple[int, int]:
        self.subscriptions.append((topic, qos))
        return self.subscribe_result, 1

    def disconnect(self) -> None:
        self.calls.append("disconnect")

    def loop_stop(self) -> None:
        self.calls.append("loop_stop")


def _subscriber(handled: list) -> TelemetrySubscriber:
    config = ConnectionConfig(broker="localhost", port=1883, topic="iot/#", transport="tcp", tls=False)
    return TelemetrySubscriber(config, handler=lambda topic, payload: handled.append((topic, payload)))


def test_validate_connection_normalises_input() -> None:
    config = validate_connection(" broker.hivemq.com ", "8884", " iot/# ")

    assert config == ConnectionConfig(broker="broker.hivemq.com", port=8884, topic="iot/#")


@pytest.mark.parametrize(
    ("broker", "port", "topic", "message"),
    [
        ("  ", 1883, "iot/#", "Broker"),
        ("localhost", "abc", "iot/#", "Port"),
        ("localhost", 0, "iot/#", "Port"),
        ("localhost", 65536, "iot/#", "Port"),
        ("localhost", 1883, "", "Topic"),
    ],
)
def test_validate_connection_rejects_bad_input(broker, port, topic, message) -> None:
    with pytest.raises(ConnectionConfigError, match=message):
        validate_connection(broker, port, topic)


def test_connect_callback_subscribes_to_topic() -> None:
    subscriber = _subscriber([])
    client = FakeClient()

    subscriber._on_connect(client, None, {}, SimpleNamespace(is_failure=False))

    assert client.subscriptions == [("iot/#", 0)]
    assert subscriber.is_connected

    subscriber._on_disconnect(client, None, {}, SimpleNamespace(is_failure=False))
    assert not subscriber.is_connected


def test_refused_connection_does_not_subscribe() -> None:
    subscriber = _subscriber([])
    client = FakeClient()

    subscriber._on_connect(client, None, {}, SimpleNamespace(is_failure=True))

    assert client.subscriptions == []
    assert not subscriber.is_connected


def test_messages_are_forwarded_to_handler() -> None:
    handled: list = []
    subscriber = _subscriber(handled)

    subscriber._on_message(None, None, SimpleNamespace(topic="iot/sampah", payload=b"{}"))

    assert handled == [("iot/sampah", b"{}")]


def test_disconnect_without_connection_is_noop() -> None:
    subscriber = _subscriber([])

    subscriber.disconnect()

    assert not subscriber.is_connected


def test_failed_subscription_is_logged_and_not_connected(caplog) -> None:
    subscriber = _subscriber([])
    client = FakeClient(subscribe_result=mqtt.MQTT_ERR_NO_CONN)

    subscriber._on_connect(client, None, {}, SimpleNamespace(is_failure=False))

    assert client.subscriptions == [("iot/#", 0)]
    assert not subscriber.is_connected
    assert any("Subscribing to telemetry failed" in record.getMessage() for record in caplog.records)


def test_disconnect_sends_disconnect_before_stopping_loop() -> None:
    subscriber = _subscriber([])
    client = FakeClient()
    subscriber._client = client  # type: ignore[assignment]

    subscriber.disconnect()

    assert client.calls == ["disconnect", "loop_stop"]
    assert subscriber._client is None
