"""Authoritative, persisted collection of monitored houses."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from threading import Lock
from typing import Any, List, Optional, Tuple

from app.schemas import MAX_HOUSE_NAME_LENGTH, CompostData, House, TrashData
from models.records import BinStatus, MeasurementType, Reading
from services.errors import (
    DuplicateHouseName,
    EmptyHouseName,
    HouseError,
    HouseNameTooLong,
    HouseNotFound,
    PersistenceError,
)
from settings import get_settings
from storage.blob_store import BlobStore, build_default_store

logger = logging.getLogger(__name__)

ID_PREFIX = "rmh"

SEED_HOUSES: Tuple[House, ...] = (
    House(
        id="rmh01",
        name="Rumah 1",
        compost_status=BinStatus.normal,
        trash_status=BinStatus.needs_check,
        compost_data=CompostData(temperature=38.2, volume=87),
        trash_data=TrashData(volume=65),
    ),
    House(
        id="rmh02",
        name="Rumah 2",
        compost_status=BinStatus.full,
        trash_status=BinStatus.normal,
        compost_data=CompostData(temperature=38.2, volume=87),
        trash_data=TrashData(volume=65),
    ),
)


@dataclass(frozen=True)
class StoreOutcome:
    """Result of a mutating store operation.

    ``houses`` is always the snapshot visible after the call. ``error`` is set
    when the request was rejected and nothing changed; ``persistence_error`` is
    set when the change was applied in memory but could not be written.
    """

    houses: Tuple[House, ...]
    house: Optional[House] = None
    error: Optional[HouseError] = None
    persistence_error: Optional[PersistenceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.persistence_error is None


class HouseStore:
    """Single writer of the house collection.

    Every mutation builds a new immutable snapshot, writes the whole collection
    to the blob store and then swaps the snapshot in, all under one lock.
    """

    def __init__(self, blob_store: BlobStore, collection_key: str = "houses.json") -> None:
        self.blob_store = blob_store
        self.collection_key = collection_key
        self._lock = Lock()
        self._dirty = False
        self._houses, self._next_sequence = self._load()

    @property
    def dirty(self) -> bool:
        """True while the in-memory snapshot is ahead of the durable copy."""
        return self._dirty

    def snapshot(self) -> Tuple[House, ...]:
        return self._houses

    def get(self, house_id: str) -> Optional[House]:
        for house in self._houses:
            if house.id == house_id:
                return house
        return None

    def apply_update(
        self,
        house_id: str,
        measurement_type: MeasurementType,
        reading: Reading,
        status: BinStatus,
    ) -> StoreOutcome:
        with self._lock:
            current = self._houses
            index = self._index_of(current, house_id)
            if index is None:
                return StoreOutcome(houses=current, error=HouseNotFound(house_id))

            house = current[index]
            if measurement_type is MeasurementType.compost:
                updated = house.model_copy(
                    update={
                        "compost_status": status,
                        "compost_data": CompostData(
                            temperature=reading.temperature or 0.0, volume=reading.volume
                        ),
                    }
                )
            else:
                updated = house.model_copy(
                    update={"trash_status": status, "trash_data": TrashData(volume=reading.volume)}
                )
            houses = current[:index] + (updated,) + current[index + 1 :]
            return self._commit(houses, updated, self._next_sequence)

    def create(self, name: str) -> StoreOutcome:
        with self._lock:
            current = self._houses
            trimmed, error = self._check_name(current, name)
            if error is not None:
                return StoreOutcome(houses=current, error=error)

            house = House(id=f"{ID_PREFIX}{self._next_sequence:02d}", name=trimmed)
            return self._commit(current + (house,), house, self._next_sequence + 1)

    def rename(self, house_id: str, name: str) -> StoreOutcome:
        with self._lock:
            current = self._houses
            index = self._index_of(current, house_id)
            if index is None:
                return StoreOutcome(houses=current, error=HouseNotFound(house_id))

            trimmed, error = self._check_name(current, name, exclude_id=house_id)
            if error is not None:
                return StoreOutcome(houses=current, error=error)

            updated = current[index].model_copy(update={"name": trimmed})
            houses = current[:index] + (updated,) + current[index + 1 :]
            return self._commit(houses, updated, self._next_sequence)

    def delete(self, house_id: str) -> StoreOutcome:
        with self._lock:
            current = self._houses
            index = self._index_of(current, house_id)
            if index is None:
                return StoreOutcome(houses=current, error=HouseNotFound(house_id))

            removed = current[index]
            houses = current[:index] + current[index + 1 :]
            return self._commit(houses, removed, self._next_sequence)

    def flush(self) -> None:
        """Rewrite the current snapshot; raises ``PersistenceError`` on failure."""
        with self._lock:
            self._write(self._houses, self._next_sequence)
            self._dirty = False

    def close(self) -> None:
        try:
            self.flush()
        except PersistenceError:
            logger.exception(
                "Final flush of house collection failed",
                extra={"collection_key": self.collection_key},
            )

    def _commit(
        self, houses: Tuple[House, ...], house: House, next_sequence: int
    ) -> StoreOutcome:
        persistence_error: Optional[PersistenceError] = None
        try:
            self._write(houses, next_sequence)
        except PersistenceError as exc:
            persistence_error = exc
            self._dirty = True
            logger.error(
                "House collection changed in memory but was not persisted",
                extra={"collection_key": self.collection_key, "house_id": house.id, "error": exc},
            )
        else:
            self._dirty = False
        self._houses = houses
        self._next_sequence = next_sequence
        return StoreOutcome(houses=houses, house=house, persistence_error=persistence_error)

    def _write(self, houses: Tuple[House, ...], next_sequence: int) -> None:
        payload = {
            "next_sequence": next_sequence,
            "houses": [house.model_dump(mode="json") for house in houses],
        }
        try:
            self.blob_store.put_object(
                self.collection_key, json.dumps(payload, indent=2).encode("utf-8")
            )
        except OSError as exc:
            raise PersistenceError(
                f"Could not write {self.collection_key!r}: {exc}"
            ) from exc

    def _load(self) -> Tuple[Tuple[House, ...], int]:
        try:
            raw = self.blob_store.get_object(self.collection_key)
        except KeyError:
            logger.info(
                "No stored house collection, starting from seed houses",
                extra={"collection_key": self.collection_key},
            )
            return SEED_HOUSES, _next_sequence_for(SEED_HOUSES)
        except OSError as exc:
            raise PersistenceError(f"Could not read {self.collection_key!r}: {exc}") from exc

        try:
            data: Any = json.loads(raw.decode("utf-8") or "[]")
            # older snapshots are a bare list of houses
            if isinstance(data, list):
                data = {"houses": data}
            houses = tuple(House.model_validate(item) for item in data.get("houses", []))
            stored_sequence = int(data.get("next_sequence") or 0)
        except (AttributeError, TypeError, ValueError) as exc:
            raise PersistenceError(
                f"Stored house collection {self.collection_key!r} is unreadable: {exc}"
            ) from exc

        return houses, max(stored_sequence, _next_sequence_for(houses))

    @staticmethod
    def _index_of(houses: Tuple[House, ...], house_id: str) -> Optional[int]:
        for index, house in enumerate(houses):
            if house.id == house_id:
                return index
        return None

    @staticmethod
    def _check_name(
        houses: Tuple[House, ...], name: str, exclude_id: Optional[str] = None
    ) -> Tuple[str, Optional[HouseError]]:
        trimmed = name.strip()
        if not trimmed:
            return trimmed, EmptyHouseName()
        if len(trimmed) > MAX_HOUSE_NAME_LENGTH:
            return trimmed, HouseNameTooLong(MAX_HOUSE_NAME_LENGTH)
        folded = trimmed.casefold()
        for house in houses:
            if house.id != exclude_id and house.name.casefold() == folded:
                return trimmed, DuplicateHouseName(trimmed)
        return trimmed, None


def _next_sequence_for(houses: Tuple[House, ...]) -> int:
    numbers: List[int] = [0]
    for house in houses:
        suffix = house.id[len(ID_PREFIX) :] if house.id.startswith(ID_PREFIX) else ""
        if suffix.isdigit():
            numbers.append(int(suffix))
    return max(numbers) + 1


@lru_cache
def build_default_house_store() -> HouseStore:
    settings = get_settings()
    return HouseStore(blob_store=build_default_store(), collection_key=settings.collection_key)
