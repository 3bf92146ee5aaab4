"""Fitbit data types and their Web API resource paths."""

from __future__ import annotations

from enum import Enum


class FitbitDataType(str, Enum):
    # Activity time-series (v1)
    STEP_COUNT = "1/user/-/activities/steps"
    CALORIES_BURNED = "1/user/-/activities/calories"
    DISTANCE = "1/user/-/activities/distance"
    HEART_RATE = "1/user/-/activities/heart"
    # Body
    BODY_WEIGHT = "1/user/-/body/log/weight"
    BODY_FAT = "1/user/-/body/log/fat"
    # Sleep (v1.2)
    SLEEP_DURATION = "1.2/user/-/sleep"
