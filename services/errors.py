"""Error taxonomy for telemetry ingestion and house management."""

from __future__ import annotations

from typing import Optional


class IngestionError(Exception):
    """A telemetry message that cannot be processed and must be dropped."""

    reason = "ingestion_error"


class DecodeError(IngestionError):
    reason = "decode"


class ClassificationError(IngestionError):
    reason = "classification"


class IdentificationError(IngestionError):
    reason = "identification"


class ValidationError(IngestionError):
    reason = "validation"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class ResolutionError(IngestionError):
    reason = "resolution"

    def __init__(self, house_id: str) -> None:
        super().__init__(f"House with id {house_id!r} not found.")
        self.house_id = house_id


class PersistenceError(Exception):
    """Writing or reading durable state (houses or history) failed."""


class HouseError(Exception):
    """Base class for rejected house management requests."""


class EmptyHouseName(HouseError):
    def __init__(self) -> None:
        super().__init__("House name must not be empty.")


class HouseNameTooLong(HouseError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"House name must be at most {limit} characters.")
        self.limit = limit


class DuplicateHouseName(HouseError):
    def __init__(self, name: str) -> None:
        super().__init__(f"House name {name!r} is already in use.")
        self.name = name


class HouseNotFound(HouseError):
    def __init__(self, house_id: str) -> None:
        super().__init__(f"House with id {house_id!r} not found.")
        self.house_id = house_id
