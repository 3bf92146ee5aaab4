"""Fitbit shim sub-package."""

from wearable_shims.shims.fitbit.catalog import FitbitDataType
from wearable_shims.shims.fitbit.shim import FitbitQueryBuilder, FitbitShim

__all__ = ["FitbitDataType", "FitbitQueryBuilder", "FitbitShim"]
