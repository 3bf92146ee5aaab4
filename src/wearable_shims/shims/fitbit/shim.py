"""Fitbit Web API shim.

Token calls authenticate the client with HTTP Basic; Fitbit rotates the
refresh token on every refresh.  Data is requested through the date-range
endpoints, which take whole days with both ends inclusive.

See: https://dev.fitbit.com/build/reference/web-api/
"""

from __future__ import annotations

from datetime import date, timedelta

import httpx

from wearable_shims.models import TimeWindow
from wearable_shims.shims.base import ProviderShim
from wearable_shims.shims.fitbit.catalog import FitbitDataType
from wearable_shims.shims.fitbit.mappers import MAPPERS
from wearable_shims.shims.mapping import MapperTable
from wearable_shims.shims.oauth import TokenLifecycle, client_secret_basic
from wearable_shims.shims.query import QueryBuilder

DEFAULT_API_BASE_URL = "https://api.fitbit.com"


class FitbitQueryBuilder(QueryBuilder):
    """``{base}/{resource}/date/{first day}/{last day}.json``."""

    def __init__(self, api_base_url: str = DEFAULT_API_BASE_URL) -> None:
        self.api_base_url = api_base_url.rstrip("/")

    def base_url(self, stream_id: str, window: TimeWindow) -> str:
        first_day = window.start.date()
        # window end is exclusive; the day holding its last instant is the last day
        last_day = (window.end - timedelta(microseconds=1)).date()
        return f"{self.api_base_url}/{stream_id}/date/{first_day:%Y-%m-%d}/{last_day:%Y-%m-%d}.json"


class FitbitShim(ProviderShim):
    shim_key = "fitbit"
    label = "Fitbit"
    authorize_url = "https://www.fitbit.com/oauth2/authorize"
    token_url = "https://api.fitbit.com/oauth2/token"
    catalog = FitbitDataType
    enhancer = staticmethod(client_secret_basic)
    authorization_params = {"prompt": "login consent"}

    def __init__(
        self,
        lifecycle: TokenLifecycle,
        http: httpx.AsyncClient,
        *,
        api_base_url: str = DEFAULT_API_BASE_URL,
        today: date | None = None,
    ) -> None:
        super().__init__(lifecycle, http, today=today)
        self._query_builder = FitbitQueryBuilder(api_base_url)

    @property
    def mappers(self) -> MapperTable[FitbitDataType]:
        return MAPPERS

    @property
    def query_builder(self) -> QueryBuilder:
        return self._query_builder
