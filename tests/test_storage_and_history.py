from datetime import datetime, timezone
from pathlib import Path

import pytest

from app.schemas import HistoryEntry
from datastore.history import HistoryLog
from models.records import BinStatus, MeasurementType
from services.errors import PersistenceError
from storage.blob_store import BlobStore


def test_blob_store_put_and_get(tmp_path: Path) -> None:
    store = BlobStore(name="test", root_path=tmp_path)
    store.put_object("houses.json", b"[]")

    assert (tmp_path / "houses.json").read_bytes() == b"[]"
    assert list(store.list_objects()) == ["houses.json"]

    fresh_store = BlobStore(name="test", root_path=tmp_path)
    assert fresh_store.get_object("houses.json") == b"[]"


def test_blob_store_missing_key(tmp_path: Path) -> None:
    store = BlobStore(name="test", root_path=tmp_path)

    with pytest.raises(KeyError, match="missing.json"):
        store.get_object("missing.json")


def test_blob_store_in_memory_only() -> None:
    store = BlobStore(name="memory")
    store.put_object("key", b"value")

    assert store.get_object("key") == b"value"


def _entry(volume: float) -> HistoryEntry:
    return HistoryEntry(
        house_id="rmh01",
        house_name="Rumah 1",
        measurement_type=MeasurementType.trash,
        volume=volume,
        status=BinStatus.normal,
        recorded_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def test_history_log_appends_and_reloads(tmp_path: Path) -> None:
    path = tmp_path / "history.json"
    log = HistoryLog(persistence_path=path)

    log.append(_entry(10))
    log.append(_entry(10))

    assert len(log) == 2
    reloaded = HistoryLog(persistence_path=path)
    assert reloaded.entries() == [_entry(10), _entry(10)]


def test_history_log_write_failure_does_not_raise(tmp_path: Path, caplog) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    log = HistoryLog()
    log.persistence_path = blocker / "history.json"

    log.append(_entry(5))

    assert len(log) == 1
    assert any("Could not persist history entry" in record.getMessage() for record in caplog.records)


def test_history_log_refuses_to_overwrite_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "history.json"
    log = HistoryLog(persistence_path=path)
    for volume in (1, 2, 3):
        log.append(_entry(volume))
    original = path.read_bytes()
    path.write_bytes(original[:-5])

    with pytest.raises(PersistenceError):
        HistoryLog(persistence_path=path)

    assert path.read_bytes() == original[:-5]


def test_history_log_writes_leave_no_staging_file(tmp_path: Path) -> None:
    path = tmp_path / "history.json"
    log = HistoryLog(persistence_path=path)

    log.append(_entry(1))
    log.append(_entry(2))

    assert [item.name for item in tmp_path.iterdir()] == ["history.json"]
    assert HistoryLog(persistence_path=path).entries() == [_entry(1), _entry(2)]
