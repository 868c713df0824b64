from __future__ import annotations

import json

from models.records import Thresholds
from services.thresholds import StoredThresholdProvider
from storage.blob_store import BlobStore

DEFAULTS = Thresholds(
    compost_temperature_limit=40.0,
    compost_volume_limit=90.0,
    trash_volume_limit=80.0,
)


def test_defaults_when_nothing_stored() -> None:
    provider = StoredThresholdProvider(BlobStore(name="test"), "thresholds.json", DEFAULTS)

    assert provider.current() == DEFAULTS


def test_stored_values_are_read_on_every_call() -> None:
    store = BlobStore(name="test")
    provider = StoredThresholdProvider(store, "thresholds.json", DEFAULTS)
    store.put_object(
        "thresholds.json",
        json.dumps(
            {"compost_temperature_limit": 55, "compost_volume_limit": 70, "trash_volume_limit": 60}
        ).encode("utf-8"),
    )

    assert provider.current() == Thresholds(55.0, 70.0, 60.0)

    store.put_object(
        "thresholds.json",
        json.dumps(
            {"compost_temperature_limit": 45, "compost_volume_limit": 70, "trash_volume_limit": 60}
        ).encode("utf-8"),
    )
    assert provider.current().compost_temperature_limit == 45.0


def test_invalid_stored_values_fall_back_to_defaults(caplog) -> None:
    store = BlobStore(name="test")
    provider = StoredThresholdProvider(store, "thresholds.json", DEFAULTS)
    store.put_object(
        "thresholds.json",
        json.dumps(
            {"compost_temperature_limit": 0, "compost_volume_limit": 70, "trash_volume_limit": 60}
        ).encode("utf-8"),
    )

    assert provider.current() == DEFAULTS
    assert any("invalid stored thresholds" in record.getMessage() for record in caplog.records)

    store.put_object("thresholds.json", b"not json")
    assert provider.current() == DEFAULTS
