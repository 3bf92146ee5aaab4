"""Provider shims that fetch wearable health data behind one normalised interface."""

from wearable_shims.results import Failed, Fetched, FetchResult, RedirectRequired
from wearable_shims.service import ShimService

__all__ = ["Failed", "FetchResult", "Fetched", "RedirectRequired", "ShimService"]
