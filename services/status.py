"""Status derivation for compost and trash bins."""

from __future__ import annotations

from models.records import BinStatus, MeasurementType, Reading, Thresholds

NEEDS_CHECK_RATIO = 0.8


class StatusDeriver:
    """Pure mapping from a reading and thresholds to a bin status.

    Limits are exclusive: a value equal to a limit is not ``Full``. For compost
    only the volume drives the ``NeedsCheck`` band; a high temperature either
    makes the bin ``Full`` or has no effect.
    """

    def derive(self, reading: Reading, thresholds: Thresholds) -> BinStatus:
        if reading.measurement_type is MeasurementType.compost:
            return self._compost(reading, thresholds)
        return self._volume_status(reading.volume, thresholds.trash_volume_limit)

    def _compost(self, reading: Reading, thresholds: Thresholds) -> BinStatus:
        temperature = reading.temperature if reading.temperature is not None else 0.0
        if temperature > thresholds.compost_temperature_limit:
            return BinStatus.full
        return self._volume_status(reading.volume, thresholds.compost_volume_limit)

    @staticmethod
    def _volume_status(volume: float, limit: float) -> BinStatus:
        if volume > limit:
            return BinStatus.full
        if volume > limit * NEEDS_CHECK_RATIO:
            return BinStatus.needs_check
        return BinStatus.normal
