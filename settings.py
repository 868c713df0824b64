from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_STORE_ROOT_ENV = "HOUSE_STORE_ROOT_PATH"
_COLLECTION_KEY_ENV = "HOUSE_COLLECTION_KEY"
_THRESHOLDS_KEY_ENV = "THRESHOLDS_KEY"
_HISTORY_PATH_ENV = "HISTORY_PERSISTENCE_PATH"
_COMPOST_TEMP_ENV = "COMPOST_TEMPERATURE_LIMIT"
_COMPOST_VOLUME_ENV = "COMPOST_VOLUME_LIMIT"
_TRASH_VOLUME_ENV = "TRASH_VOLUME_LIMIT"
_MQTT_BROKER_ENV = "MQTT_BROKER"
_MQTT_PORT_ENV = "MQTT_PORT"
_MQTT_TOPIC_ENV = "MQTT_TOPIC"
_MQTT_TRANSPORT_ENV = "MQTT_TRANSPORT"
_MQTT_TLS_ENV = "MQTT_TLS"
_MQTT_ENABLED_ENV = "MQTT_ENABLED"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    store_root_path: Optional[str]
    collection_key: str
    thresholds_key: str
    history_persistence_path: Optional[str]
    compost_temperature_limit: float
    compost_volume_limit: float
    trash_volume_limit: float
    mqtt_broker: str
    mqtt_port: int
    mqtt_topic: str
    mqtt_transport: str
    mqtt_tls: bool
    mqtt_enabled: bool
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_limit(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_port(default: int) -> int:
    value = os.getenv(_MQTT_PORT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if 1 <= parsed <= 65535 else default


def _read_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if not candidate:
        return default
    return candidate in {"1", "true", "yes", "on"}


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        store_root_path=_read_optional_env(_STORE_ROOT_ENV, "./tmp/house_store"),
        collection_key=_read_str_env(_COLLECTION_KEY_ENV, "houses.json"),
        thresholds_key=_read_str_env(_THRESHOLDS_KEY_ENV, "thresholds.json"),
        history_persistence_path=_read_optional_env(_HISTORY_PATH_ENV, "./tmp/history.json"),
        compost_temperature_limit=_read_limit(_COMPOST_TEMP_ENV, 40.0),
        compost_volume_limit=_read_limit(_COMPOST_VOLUME_ENV, 90.0),
        trash_volume_limit=_read_limit(_TRASH_VOLUME_ENV, 80.0),
        mqtt_broker=_read_str_env(_MQTT_BROKER_ENV, "broker.hivemq.com"),
        mqtt_port=_read_port(8884),
        mqtt_topic=_read_str_env(_MQTT_TOPIC_ENV, "iot/#"),
        mqtt_transport=_read_str_env(_MQTT_TRANSPORT_ENV, "websockets"),
        mqtt_tls=_read_flag(_MQTT_TLS_ENV, True),
        mqtt_enabled=_read_flag(_MQTT_ENABLED_ENV, False),
        log_level=_read_log_level("INFO"),
    )
