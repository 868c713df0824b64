"""Ingestion of telemetry messages into house state."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from threading import Lock
from typing import Any, Dict, Mapping, Optional, Protocol

from app.schemas import HistoryEntry, IngestionOutcome, IngestionResponse, IngestionStats
from datastore.history import build_default_history
from datastore.houses import HouseStore, build_default_house_store
from models.records import MeasurementType
from services.errors import (
    ClassificationError,
    DecodeError,
    IdentificationError,
    IngestionError,
    ResolutionError,
)
from services.resolver import EntityResolver
from services.status import StatusDeriver
from services.thresholds import ThresholdProvider, build_default_threshold_provider
from services.validator import TelemetryValidator

logger = logging.getLogger(__name__)

TOPIC_MEASUREMENT_TYPES: Dict[str, MeasurementType] = {
    "kompos": MeasurementType.compost,
    "sampah": MeasurementType.trash,
}

HOUSE_ID_FIELDS = ("rumahId", "houseId")


class HistoryRecorder(Protocol):
    def append(self, entry: HistoryEntry) -> None: ...


class IngestionPipeline:
    """Runs every inbound message through decode, classify, identify,
    validate, resolve, derive, record and commit.

    Each message is independent: a failure at any step drops that message
    only, and nothing after the failing step runs.
    """

    def __init__(
        self,
        store: HouseStore,
        thresholds: ThresholdProvider,
        history: HistoryRecorder,
        validator: Optional[TelemetryValidator] = None,
        deriver: Optional[StatusDeriver] = None,
    ) -> None:
        self.store = store
        self.thresholds = thresholds
        self.history = history
        self.validator = validator or TelemetryValidator()
        self.deriver = deriver or StatusDeriver()
        self.resolver = EntityResolver(store)
        self._stats = IngestionStats()
        self._stats_lock = Lock()

    def handle(self, topic: str, payload: bytes) -> IngestionResponse:
        """Process one ``(topic, payload)`` pair to completion."""
        self._count("received")
        try:
            response = self._process(topic, payload)
        except IngestionError as exc:
            self._count("dropped", reason=exc.reason)
            logger.warning(
                "Dropping telemetry message: %s",
                exc,
                extra={
                    "topic": topic,
                    "reason": exc.reason,
                    "field": getattr(exc, "field", None),
                    "house_id": getattr(exc, "house_id", None),
                },
            )
            return IngestionResponse(
                topic=topic,
                outcome=IngestionOutcome.dropped,
                house_id=getattr(exc, "house_id", None),
                reason=str(exc),
            )
        except Exception as exc:  # pragma: no cover - defensive catch-all
            self._count("dropped", reason="internal")
            logger.exception("Unexpected failure while processing telemetry", extra={"topic": topic})
            return IngestionResponse(
                topic=topic, outcome=IngestionOutcome.dropped, reason=str(exc)
            )

        self._count("processed")
        if response.outcome is IngestionOutcome.persistence_failed:
            self._count("persistence_failures")
        return response

    def stats(self) -> IngestionStats:
        with self._stats_lock:
            return self._stats.model_copy(deep=True)

    def _process(self, topic: str, payload: bytes) -> IngestionResponse:
        data = self._decode(payload)
        measurement_type = self._classify(topic)
        house_id = self._identify(data)
        reading = self.validator.validate(measurement_type, house_id, data)

        house = self.resolver.resolve(house_id)
        status = self.deriver.derive(reading, self.thresholds.current())

        self.history.append(
            HistoryEntry(
                house_id=house.id,
                house_name=house.name,
                measurement_type=measurement_type,
                temperature=reading.temperature,
                volume=reading.volume,
                status=status,
            )
        )

        outcome = self.store.apply_update(house_id, measurement_type, reading, status)
        if outcome.error is not None:
            # house was deleted between resolve and commit
            raise ResolutionError(house_id)
        if outcome.persistence_error is not None:
            logger.error(
                "Telemetry applied but house collection was not persisted",
                extra={
                    "topic": topic,
                    "house_id": house_id,
                    "status": status.value,
                    "error": outcome.persistence_error,
                },
            )
            return IngestionResponse(
                topic=topic,
                outcome=IngestionOutcome.persistence_failed,
                house_id=house_id,
                status=status,
                reason=str(outcome.persistence_error),
            )

        logger.info(
            "Telemetry applied",
            extra={
                "topic": topic,
                "house_id": house_id,
                "measurement_type": measurement_type.value,
                "status": status.value,
            },
        )
        return IngestionResponse(
            topic=topic,
            outcome=IngestionOutcome.processed,
            house_id=house_id,
            status=status,
        )

    @staticmethod
    def _decode(payload: bytes) -> Mapping[str, Any]:
        try:
            data = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise DecodeError(f"Payload is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise DecodeError("Payload must be a JSON object.")
        return data

    @staticmethod
    def _classify(topic: str) -> MeasurementType:
        segments = topic.split("/")
        segment = segments[1] if len(segments) > 1 else ""
        measurement_type = TOPIC_MEASUREMENT_TYPES.get(segment)
        if measurement_type is None:
            raise ClassificationError(f"Unknown topic classification {segment!r}.")
        return measurement_type

    @staticmethod
    def _identify(data: Mapping[str, Any]) -> str:
        for key in HOUSE_ID_FIELDS:
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value
        raise IdentificationError("Payload does not carry a house id (rumahId).")

    def _count(self, counter: str, reason: Optional[str] = None) -> None:
        with self._stats_lock:
            setattr(self._stats, counter, getattr(self._stats, counter) + 1)
            if reason is not None:
                by_reason = self._stats.dropped_by_reason
                by_reason[reason] = by_reason.get(reason, 0) + 1


@lru_cache
def build_default_pipeline() -> IngestionPipeline:
    """Factory that wires the pipeline with the default stores."""
    return IngestionPipeline(
        store=build_default_house_store(),
        thresholds=build_default_threshold_provider(),
        history=build_default_history(),
    )
