from __future__ import annotations

from typing import Iterable

from datastore.houses import build_default_house_store
from services.thresholds import build_default_threshold_provider
from settings import get_settings
from storage.blob_store import build_default_store


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    store_root = tmp_path / "store"

    monkeypatch.setenv("HOUSE_STORE_ROOT_PATH", str(store_root))
    monkeypatch.setenv("HOUSE_COLLECTION_KEY", "custom-houses.json")
    monkeypatch.setenv("TRASH_VOLUME_LIMIT", "70")
    monkeypatch.setenv("COMPOST_VOLUME_LIMIT", "-5")
    monkeypatch.setenv("MQTT_PORT", "70000")
    monkeypatch.setenv("MQTT_ENABLED", "true")

    caches = (
        get_settings,
        build_default_store,
        build_default_house_store,
        build_default_threshold_provider,
    )
    _clear_caches(caches)

    try:
        settings = get_settings()
        store = build_default_house_store()
        thresholds = build_default_threshold_provider().current()

        assert settings.mqtt_enabled is True
        assert settings.mqtt_port == 8884
        assert store.blob_store.root_path == store_root
        assert store.collection_key == "custom-houses.json"
        assert thresholds.trash_volume_limit == 70.0
        assert thresholds.compost_volume_limit == 90.0
    finally:
        _clear_caches(caches)


def test_blank_store_root_means_in_memory(monkeypatch) -> None:
    monkeypatch.setenv("HOUSE_STORE_ROOT_PATH", "   ")
    _clear_caches((get_settings, build_default_store))

    try:
        assert build_default_store().root_path is None
    finally:
        _clear_caches((get_settings, build_default_store))
