"""Sources of the limits used for status derivation."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Protocol

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from models.records import Thresholds
from settings import get_settings
from storage.blob_store import BlobStore, build_default_store

logger = logging.getLogger(__name__)


class ThresholdProvider(Protocol):
    def current(self) -> Thresholds: ...


class StoredThresholds(BaseModel):
    compost_temperature_limit: float = Field(..., gt=0)
    compost_volume_limit: float = Field(..., gt=0)
    trash_volume_limit: float = Field(..., gt=0)


class StaticThresholdProvider:
    """Always returns the same thresholds."""

    def __init__(self, thresholds: Thresholds) -> None:
        self._thresholds = thresholds

    def current(self) -> Thresholds:
        return self._thresholds


class StoredThresholdProvider:
    """Reads thresholds from the blob store on every call.

    The settings page of the dashboard owns that blob; when it is missing or
    invalid the configured defaults apply.
    """

    def __init__(self, blob_store: BlobStore, key: str, defaults: Thresholds) -> None:
        self.blob_store = blob_store
        self.key = key
        self.defaults = defaults

    def current(self) -> Thresholds:
        try:
            raw = self.blob_store.get_object(self.key)
        except KeyError:
            return self.defaults

        try:
            stored = StoredThresholds.model_validate(json.loads(raw.decode("utf-8")))
        except (ValueError, PydanticValidationError) as exc:
            logger.warning(
                "Ignoring invalid stored thresholds, using defaults",
                extra={"reason": str(exc)},
            )
            return self.defaults

        return Thresholds(
            compost_temperature_limit=stored.compost_temperature_limit,
            compost_volume_limit=stored.compost_volume_limit,
            trash_volume_limit=stored.trash_volume_limit,
        )


def default_thresholds() -> Thresholds:
    settings = get_settings()
    return Thresholds(
        compost_temperature_limit=settings.compost_temperature_limit,
        compost_volume_limit=settings.compost_volume_limit,
        trash_volume_limit=settings.trash_volume_limit,
    )


@lru_cache
def build_default_threshold_provider() -> StoredThresholdProvider:
    settings = get_settings()
    return StoredThresholdProvider(
        blob_store=build_default_store(),
        key=settings.thresholds_key,
        defaults=default_thresholds(),
    )
