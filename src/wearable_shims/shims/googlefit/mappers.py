"""Mappers from Google Fit dataset responses to normalised data points.

A dataset response looks like::

    {
      "dataSourceId": "derived:com.google.step_count.delta:...",
      "minStartTimeNs": "...", "maxEndTimeNs": "...",
      "point": [
        {"startTimeNanos": "1473284600000000000",
         "endTimeNanos": "1473284660000000000",
         "dataTypeName": "com.google.step_count.delta",
         "originDataSourceId": "raw:com.google.step_count.cumulative:...",
         "value": [{"intVal": 46}]}
      ]
    }

``point`` is omitted entirely when the window holds no data.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any

from wearable_shims.errors import MalformedPayload
from wearable_shims.models import NormalizedDataPoint, Provenance, TimeInterval
from wearable_shims.shims.googlefit.catalog import GoogleFitDataType
from wearable_shims.shims.mapping import DataPointMapper, MapperTable
from wearable_shims.shims.query import from_epoch_nanos

SOURCE = "googlefit"

Value = float | str | dict[str, float]


class GoogleFitDataPointMapper(DataPointMapper):
    """Shared point handling; subclasses only read the ``value`` array."""

    source = SOURCE
    unit: str

    def __init__(self, data_type: GoogleFitDataType) -> None:
        self.data_type = data_type.name.lower()
        self.stream_id = data_type.value

    def records(self, payload: Any) -> list[Any]:
        if not isinstance(payload, dict):
            raise MalformedPayload(f"Expected a Google Fit dataset object, got {type(payload).__name__}.")
        points = payload.get("point", [])
        if not isinstance(points, list):
            raise MalformedPayload("Google Fit dataset 'point' is not a list.")
        return points

    @abstractmethod
    def value_of(self, values: list[dict[str, Any]]) -> Value | None:
        """Read the measurement; ``None`` filters the point out."""

    def map_record(self, record: Any) -> NormalizedDataPoint | None:
        value = self.value_of(record["value"])
        if value is None:
            return None

        start = from_epoch_nanos(int(record["startTimeNanos"]))
        end = from_epoch_nanos(int(record["endTimeNanos"]))
        when: dict[str, Any]
        if start == end:
            when = {"timestamp": start}
        else:
            when = {"interval": TimeInterval(start=start, end=end)}

        return NormalizedDataPoint(
            data_type=self.data_type,
            value=value,
            unit=self.unit,
            provenance=Provenance(
                source=self.source,
                source_stream_id=self.stream_id,
                origin_id=record.get("originDataSourceId"),
            ),
            **when,
        )


class MeasureMapper(GoogleFitDataPointMapper):
    """A single numeric field in ``value[0]``."""

    def __init__(
        self,
        data_type: GoogleFitDataType,
        unit: str,
        *,
        field: str = "fpVal",
        skip_zero: bool = False,
    ) -> None:
        super().__init__(data_type)
        self.unit = unit
        self.field = field
        self.skip_zero = skip_zero

    def value_of(self, values: list[dict[str, Any]]) -> float | None:
        value = float(values[0][self.field])
        if self.skip_zero and value == 0:
            return None
        return value


class GeopositionMapper(GoogleFitDataPointMapper):
    """``value`` is ``[latitude, longitude, accuracy, (altitude)]``."""

    unit = "deg"

    def value_of(self, values: list[dict[str, Any]]) -> dict[str, float]:
        latitude = float(values[0]["fpVal"])
        longitude = float(values[1]["fpVal"])
        if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            raise ValueError(f"coordinates out of range: {latitude}, {longitude}")
        position = {"latitude": latitude, "longitude": longitude}
        if len(values) > 2 and "fpVal" in values[2]:
            position["accuracy_m"] = float(values[2]["fpVal"])
        return position


# Google Fit activity type codes.
# https://developers.google.com/fit/rest/v1/reference/activity-types
ACTIVITY_NAMES: dict[int, str] = {
    0: "in vehicle",
    1: "biking",
    2: "on foot",
    3: "still",
    4: "unknown",
    5: "tilting",
    7: "walking",
    8: "running",
    9: "aerobics",
    10: "badminton",
    11: "baseball",
    12: "basketball",
    13: "biathlon",
    14: "handbiking",
    15: "mountain biking",
    16: "road biking",
    17: "spinning",
    18: "stationary biking",
    19: "utility biking",
    20: "boxing",
    21: "calisthenics",
    22: "circuit training",
    23: "cricket",
    24: "dancing",
    25: "elliptical",
    26: "fencing",
    27: "american football",
    28: "australian football",
    29: "soccer",
    30: "frisbee",
    31: "gardening",
    32: "golf",
    33: "gymnastics",
    34: "handball",
    35: "hiking",
    36: "hockey",
    37: "horseback riding",
    38: "housework",
    39: "jumping rope",
    40: "kayaking",
    41: "kettlebell training",
    42: "kickboxing",
    43: "kitesurfing",
    44: "martial arts",
    45: "meditation",
    46: "mixed martial arts",
    47: "p90x exercises",
    48: "paragliding",
    49: "pilates",
    50: "polo",
    51: "racquetball",
    52: "rock climbing",
    53: "rowing",
    54: "rowing machine",
    55: "rugby",
    56: "jogging",
    57: "running on sand",
    58: "treadmill running",
    59: "sailing",
    60: "scuba diving",
    61: "skateboarding",
    62: "skating",
    63: "cross skating",
    64: "inline skating",
    65: "skiing",
    66: "back-country skiing",
    67: "cross-country skiing",
    68: "downhill skiing",
    69: "kite skiing",
    70: "roller skiing",
    71: "sledding",
    72: "sleeping",
    73: "snowboarding",
    74: "snowmobile",
    75: "snowshoeing",
    76: "squash",
    77: "stair climbing",
    78: "stair-climbing machine",
    79: "stand-up paddleboarding",
    80: "strength training",
    81: "surfing",
    82: "swimming",
    83: "pool swimming",
    84: "open water swimming",
    85: "table tennis",
    86: "team sports",
    87: "tennis",
    88: "treadmill",
    89: "volleyball",
    90: "beach volleyball",
    91: "indoor volleyball",
    92: "wakeboarding",
    93: "fitness walking",
    94: "nordic walking",
    95: "treadmill walking",
    96: "water polo",
    97: "weightlifting",
    98: "wheelchair",
    99: "windsurfing",
    100: "yoga",
    101: "zumba",
    102: "diving",
    103: "ergometer",
    104: "ice skating",
    105: "indoor skating",
    106: "curling",
    108: "other",
    109: "light sleep",
    110: "deep sleep",
    111: "rem sleep",
    112: "awake",
    113: "crossfit",
    114: "hiit",
    115: "interval training",
    116: "stroller walking",
    117: "elevator",
    118: "escalator",
    119: "archery",
    120: "softball",
}

# Segments that are not physical activity.
NON_ACTIVITY_CODES = frozenset({0, 3, 4, 5, 72, 109, 110, 111, 112, 117, 118})


class PhysicalActivityMapper(GoogleFitDataPointMapper):
    unit = ""

    def value_of(self, values: list[dict[str, Any]]) -> str | None:
        code = int(values[0]["intVal"])
        if code in NON_ACTIVITY_CODES:
            return None
        return ACTIVITY_NAMES.get(code, f"activity {code}")


MAPPERS = MapperTable(
    GoogleFitDataType,
    {
        GoogleFitDataType.BODY_HEIGHT: MeasureMapper(GoogleFitDataType.BODY_HEIGHT, "m"),
        GoogleFitDataType.BODY_WEIGHT: MeasureMapper(GoogleFitDataType.BODY_WEIGHT, "kg"),
        GoogleFitDataType.CALORIES_BURNED: MeasureMapper(GoogleFitDataType.CALORIES_BURNED, "kcal"),
        GoogleFitDataType.GEOPOSITION: GeopositionMapper(GoogleFitDataType.GEOPOSITION),
        GoogleFitDataType.HEART_RATE: MeasureMapper(GoogleFitDataType.HEART_RATE, "beats/min"),
        GoogleFitDataType.PHYSICAL_ACTIVITY: PhysicalActivityMapper(GoogleFitDataType.PHYSICAL_ACTIVITY),
        GoogleFitDataType.SPEED: MeasureMapper(GoogleFitDataType.SPEED, "m/s"),
        GoogleFitDataType.STEP_COUNT: MeasureMapper(
            GoogleFitDataType.STEP_COUNT, "steps", field="intVal", skip_zero=True
        ),
    },
)
