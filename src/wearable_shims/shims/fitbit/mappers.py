"""Mappers from Fitbit Web API responses to normalised data points.

Fitbit reports days and clock times in the user's profile timezone without an
offset; they are read as UTC.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Any

from wearable_shims.errors import MalformedPayload
from wearable_shims.models import NormalizedDataPoint, Provenance, TimeInterval
from wearable_shims.shims.fitbit.catalog import FitbitDataType
from wearable_shims.shims.mapping import DataPointMapper, MapperTable

SOURCE = "fitbit"


def _day(value: str) -> TimeInterval:
    start = datetime.combine(date.fromisoformat(value), datetime.min.time(), tzinfo=UTC)
    return TimeInterval(start=start, end=start + timedelta(days=1))


def _local(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=UTC)


class FitbitDataPointMapper(DataPointMapper):
    """Reads the list of records stored under ``collection`` in the response."""

    source = SOURCE
    collection: str
    unit: str

    def __init__(self, data_type: FitbitDataType, collection: str, unit: str) -> None:
        self.data_type = data_type.name.lower()
        self.stream_id = data_type.value
        self.collection = collection
        self.unit = unit

    def records(self, payload: Any) -> list[Any]:
        if not isinstance(payload, dict) or not isinstance(payload.get(self.collection), list):
            raise MalformedPayload(f"Fitbit response has no {self.collection!r} list.")
        return payload[self.collection]

    def point(self, value: float, *, origin_id: str | None = None, **when: Any) -> NormalizedDataPoint:
        return NormalizedDataPoint(
            data_type=self.data_type,
            value=value,
            unit=self.unit,
            provenance=Provenance(source=self.source, source_stream_id=self.stream_id, origin_id=origin_id),
            **when,
        )


class TimeSeriesMapper(FitbitDataPointMapper):
    """Daily totals: ``{"dateTime": "2024-03-01", "value": "8423"}``."""

    def map_record(self, record: Any) -> NormalizedDataPoint:
        return self.point(float(record["value"]), interval=_day(record["dateTime"]))


class RestingHeartRateMapper(FitbitDataPointMapper):
    """Daily resting heart rate from the ``activities-heart`` summary."""

    def map_record(self, record: Any) -> NormalizedDataPoint | None:
        resting = record["value"].get("restingHeartRate")
        if resting is None:
            return None
        return self.point(float(resting), interval=_day(record["dateTime"]))


class BodyLogMapper(FitbitDataPointMapper):
    """Body logs: ``{"date": ..., "time": ..., "<field>": ..., "logId": ...}``."""

    def __init__(self, data_type: FitbitDataType, collection: str, unit: str, field: str) -> None:
        super().__init__(data_type, collection, unit)
        self.field = field

    def map_record(self, record: Any) -> NormalizedDataPoint:
        log_id = record.get("logId")
        return self.point(
            float(record[self.field]),
            timestamp=_local(f"{record['date']}T{record.get('time', '00:00:00')}"),
            origin_id=str(log_id) if log_id is not None else None,
        )


class SleepDurationMapper(FitbitDataPointMapper):
    """One point per sleep log; the value is total minutes asleep."""

    def map_record(self, record: Any) -> NormalizedDataPoint:
        log_id = record.get("logId")
        return self.point(
            float(record["minutesAsleep"]),
            interval=TimeInterval(start=_local(record["startTime"]), end=_local(record["endTime"])),
            origin_id=str(log_id) if log_id is not None else None,
        )


MAPPERS = MapperTable(
    FitbitDataType,
    {
        FitbitDataType.STEP_COUNT: TimeSeriesMapper(FitbitDataType.STEP_COUNT, "activities-steps", "steps"),
        FitbitDataType.CALORIES_BURNED: TimeSeriesMapper(
            FitbitDataType.CALORIES_BURNED, "activities-calories", "kcal"
        ),
        FitbitDataType.DISTANCE: TimeSeriesMapper(FitbitDataType.DISTANCE, "activities-distance", "km"),
        FitbitDataType.HEART_RATE: RestingHeartRateMapper(
            FitbitDataType.HEART_RATE, "activities-heart", "beats/min"
        ),
        FitbitDataType.BODY_WEIGHT: BodyLogMapper(FitbitDataType.BODY_WEIGHT, "weight", "kg", "weight"),
        FitbitDataType.BODY_FAT: BodyLogMapper(FitbitDataType.BODY_FAT, "fat", "%", "fat"),
        FitbitDataType.SLEEP_DURATION: SleepDurationMapper(FitbitDataType.SLEEP_DURATION, "sleep", "min"),
    },
)
