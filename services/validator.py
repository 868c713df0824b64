"""Schema validation of decoded telemetry payloads."""

from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Type

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from models.records import MeasurementType, Reading
from services.errors import ValidationError


def _require_number(value: Any) -> Any:
    # JSON numbers only: "87" and true are rejected rather than coerced
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("must be a number")
    try:
        finite = math.isfinite(value)
    except OverflowError:
        finite = False
    if not finite:
        raise ValueError("must be a finite number")
    return value


class TrashPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    volume: float = Field(..., ge=0, le=100)

    @field_validator("volume", mode="before")
    @classmethod
    def require_number(cls, value: Any) -> Any:
        return _require_number(value)


class CompostPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    temperature: float = Field(
        ..., ge=0, le=100, validation_alias=AliasChoices("temperature", "suhu")
    )
    volume: float = Field(..., ge=0, le=100)

    @field_validator("temperature", "volume", mode="before")
    @classmethod
    def require_number(cls, value: Any) -> Any:
        return _require_number(value)


_SCHEMAS: Dict[MeasurementType, Type[BaseModel]] = {
    MeasurementType.compost: CompostPayload,
    MeasurementType.trash: TrashPayload,
}


class TelemetryValidator:
    """Turns a decoded payload into a :class:`Reading` or raises ``ValidationError``."""

    def validate(self, measurement_type: Any, house_id: str, payload: Mapping[str, Any]) -> Reading:
        schema = _SCHEMAS.get(measurement_type)
        if schema is None:
            raise ValidationError("unknown topic classification", field="topic")

        try:
            parsed = schema.model_validate(dict(payload))
        except PydanticValidationError as exc:
            error = exc.errors()[0]
            field = str(error["loc"][0]) if error["loc"] else None
            raise ValidationError(
                f"{field or 'payload'}: {error['msg']}", field=field
            ) from exc

        return Reading(
            measurement_type=measurement_type,
            house_id=house_id,
            volume=float(parsed.volume),
            temperature=float(parsed.temperature) if isinstance(parsed, CompostPayload) else None,
        )
