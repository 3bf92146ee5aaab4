"""Google Fit shim sub-package."""

from wearable_shims.shims.googlefit.catalog import GoogleFitDataType
from wearable_shims.shims.googlefit.shim import GoogleFitQueryBuilder, GoogleFitShim

__all__ = ["GoogleFitDataType", "GoogleFitQueryBuilder", "GoogleFitShim"]
