"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MeasurementType(str, Enum):
    """Kind of bin a telemetry sample describes."""

    compost = "Compost"
    trash = "Trash"


class BinStatus(str, Enum):
    """Derived health label for a single bin."""

    normal = "Normal"
    needs_check = "NeedsCheck"
    full = "Full"


@dataclass(frozen=True)
class Thresholds:
    """Limits used to derive bin status from raw readings."""

    compost_temperature_limit: float
    compost_volume_limit: float
    trash_volume_limit: float


@dataclass(slots=True)
class Reading:
    """A single validated telemetry sample, alive for one ingestion only."""

    measurement_type: MeasurementType
    house_id: str
    volume: float
    temperature: Optional[float] = None
