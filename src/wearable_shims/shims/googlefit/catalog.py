"""Google Fit data types and their merged data source ids."""

from __future__ import annotations

from enum import Enum


class GoogleFitDataType(str, Enum):
    BODY_HEIGHT = "derived:com.google.height:com.google.android.gms:merge_height"
    BODY_WEIGHT = "derived:com.google.weight:com.google.android.gms:merge_weight"
    CALORIES_BURNED = "derived:com.google.calories.expended:com.google.android.gms:merge_calories_expended"
    GEOPOSITION = "derived:com.google.location.sample:com.google.android.gms:merge_location_samples"
    HEART_RATE = "derived:com.google.heart_rate.bpm:com.google.android.gms:merge_heart_rate_bpm"
    PHYSICAL_ACTIVITY = "derived:com.google.activity.segment:com.google.android.gms:merge_activity_segments"
    SPEED = "derived:com.google.speed:com.google.android.gms:merge_speed"
    STEP_COUNT = "derived:com.google.step_count.delta:com.google.android.gms:merge_step_deltas"
