"""Unit tests for status derivation."""

from __future__ import annotations

import pytest

from models.records import BinStatus, MeasurementType, Reading, Thresholds
from services.status import StatusDeriver

THRESHOLDS = Thresholds(
    compost_temperature_limit=40.0,
    compost_volume_limit=90.0,
    trash_volume_limit=80.0,
)


def _compost(temperature: float, volume: float) -> Reading:
    return Reading(
        measurement_type=MeasurementType.compost,
        house_id="rmh01",
        volume=volume,
        temperature=temperature,
    )


def _trash(volume: float) -> Reading:
    return Reading(measurement_type=MeasurementType.trash, house_id="rmh01", volume=volume)


def test_compost_volume_in_warning_band_needs_check() -> None:
    assert StatusDeriver().derive(_compost(38.2, 87), THRESHOLDS) is BinStatus.needs_check


def test_compost_volume_over_limit_is_full_with_normal_temperature() -> None:
    assert StatusDeriver().derive(_compost(30, 95), THRESHOLDS) is BinStatus.full


def test_compost_temperature_over_limit_is_full() -> None:
    assert StatusDeriver().derive(_compost(40.5, 10), THRESHOLDS) is BinStatus.full


def test_compost_high_temperature_alone_stays_normal() -> None:
    # 39 is above 80% of the temperature limit, only volume drives NeedsCheck
    assert StatusDeriver().derive(_compost(39, 50), THRESHOLDS) is BinStatus.normal


@pytest.mark.parametrize(
    ("volume", "expected"),
    [
        (0, BinStatus.normal),
        (64, BinStatus.normal),
        (65, BinStatus.needs_check),
        (80, BinStatus.needs_check),
        (80.01, BinStatus.full),
        (100, BinStatus.full),
    ],
)
def test_trash_bands(volume: float, expected: BinStatus) -> None:
    assert StatusDeriver().derive(_trash(volume), THRESHOLDS) is expected


def test_values_equal_to_limits_are_not_full() -> None:
    deriver = StatusDeriver()

    assert deriver.derive(_compost(40, 72), THRESHOLDS) is BinStatus.normal
    assert deriver.derive(_compost(40, 90), THRESHOLDS) is BinStatus.needs_check
