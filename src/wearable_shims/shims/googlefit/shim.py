"""Google Fit REST API shim.

Google's OAuth quirks handled here:
  - client id and secret travel in the form body of every token call,
    refreshes included;
  - refresh responses never carry a new refresh token (the lifecycle keeps
    the old one);
  - a refresh token is only issued with ``access_type=offline`` and, for an
    already-consented user, ``approval_prompt=force``.

See: https://developers.google.com/fit/rest/v1/reference/users/dataSources/datasets/get
"""

from __future__ import annotations

from urllib.parse import quote

from wearable_shims.models import TimeWindow
from wearable_shims.shims.base import ProviderShim
from wearable_shims.shims.googlefit.catalog import GoogleFitDataType
from wearable_shims.shims.googlefit.mappers import MAPPERS
from wearable_shims.shims.mapping import MapperTable
from wearable_shims.shims.oauth import client_secret_post
from wearable_shims.shims.query import QueryBuilder, to_epoch_nanos

DATA_URL = "https://www.googleapis.com/fitness/v1/users/me/dataSources"


class GoogleFitQueryBuilder(QueryBuilder):
    """``.../dataSources/{id}/datasets/{startNanos}-{endNanos}``."""

    # Google's `limit` parameter and dataset paging don't behave as documented,
    # so whole windows are requested unpaged.
    paging_enabled = False

    def base_url(self, stream_id: str, window: TimeWindow) -> str:
        dataset_id = f"{to_epoch_nanos(window.start)}-{to_epoch_nanos(window.end)}"
        return f"{DATA_URL}/{quote(stream_id, safe=':')}/datasets/{dataset_id}"


class GoogleFitShim(ProviderShim):
    shim_key = "googlefit"
    label = "Google Fit"
    authorize_url = "https://accounts.google.com/o/oauth2/auth"
    token_url = "https://accounts.google.com/o/oauth2/token"
    catalog = GoogleFitDataType
    enhancer = staticmethod(client_secret_post)
    authorization_params = {"access_type": "offline", "approval_prompt": "force"}

    _query_builder = GoogleFitQueryBuilder()

    @property
    def mappers(self) -> MapperTable[GoogleFitDataType]:
        return MAPPERS

    @property
    def query_builder(self) -> QueryBuilder:
        return self._query_builder
