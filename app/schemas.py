"""Pydantic schemas for persisted records and the HTTP API layer."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import BinStatus, MeasurementType

MAX_HOUSE_NAME_LENGTH = 50


class CompostData(BaseModel):
    """Latest compost bin measurements."""

    temperature: float = 0.0
    volume: float = 0.0


class TrashData(BaseModel):
    """Latest trash bin measurements."""

    volume: float = 0.0


class House(BaseModel):
    """A monitored location with one compost bin and one trash bin."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    compost_status: BinStatus = BinStatus.normal
    trash_status: BinStatus = BinStatus.normal
    compost_data: CompostData = Field(default_factory=CompostData)
    trash_data: TrashData = Field(default_factory=TrashData)


class HistoryEntry(BaseModel):
    """Immutable audit record of one processed reading."""

    model_config = ConfigDict(frozen=True)

    house_id: str
    house_name: str = Field(..., description="House name captured when the reading arrived.")
    measurement_type: MeasurementType
    temperature: Optional[float] = None
    volume: float
    status: BinStatus
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class HouseNameRequest(BaseModel):
    """Request body for creating or renaming a house."""

    name: str


class IngestionOutcome(str, Enum):
    """Terminal state of one telemetry message."""

    processed = "processed"
    dropped = "dropped"
    persistence_failed = "persistence_failed"


class IngestionResponse(BaseModel):
    """Outcome of pushing one telemetry message through the pipeline."""

    topic: str
    outcome: IngestionOutcome
    house_id: Optional[str] = None
    status: Optional[BinStatus] = None
    reason: Optional[str] = None


class IngestionStats(BaseModel):
    """Running counters of the ingestion pipeline."""

    received: int = Field(0, ge=0)
    processed: int = Field(0, ge=0)
    dropped: int = Field(0, ge=0)
    persistence_failures: int = Field(0, ge=0)
    dropped_by_reason: Dict[str, int] = Field(default_factory=dict)
