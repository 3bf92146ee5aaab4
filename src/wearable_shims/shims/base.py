"""Abstract base class for all provider shims."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, ClassVar, Self

import httpx
import structlog

from wearable_shims.config import OAuth2ClientSettings
from wearable_shims.errors import MalformedPayload, UpstreamRequestFailed
from wearable_shims.models import ShimDataRequest, ShimDataResponse
from wearable_shims.shims.catalog import data_type_keys, parse_data_type_key
from wearable_shims.shims.mapping import MapperTable
from wearable_shims.shims.oauth import (
    RequestEnhancer,
    TokenLifecycle,
    client_secret_basic,
    response_body,
)
from wearable_shims.shims.query import QueryBuilder, resolve_window
from wearable_shims.shims.tokens import TokenStore

logger = structlog.get_logger(__name__)


class ProviderShim(ABC):
    """Contract that every provider-specific shim must implement.

    A shim validates the requested data type against its own catalog,
    obtains a valid credential from its :class:`TokenLifecycle`, queries the
    provider for the resolved time window, and either hands back the raw
    payload or normalises it through the data type's mapper.

    Subclasses declare the provider's tables (``catalog``, ``mappers``,
    ``query_builder``); they hold no mutable state of their own.
    """

    shim_key: ClassVar[str]
    label: ClassVar[str]
    authorize_url: ClassVar[str]
    token_url: ClassVar[str]
    catalog: ClassVar[type[Enum]]
    # Token-call quirks and extra consent parameters, handed to the lifecycle.
    enhancer: ClassVar[RequestEnhancer] = staticmethod(client_secret_basic)
    authorization_params: ClassVar[dict[str, str]] = {}

    def __init__(
        self,
        lifecycle: TokenLifecycle,
        http: httpx.AsyncClient,
        *,
        today: date | None = None,
    ) -> None:
        self.lifecycle = lifecycle
        self._http = http
        self._today = today

    @classmethod
    def create(
        cls,
        *,
        client: OAuth2ClientSettings,
        store: TokenStore,
        http: httpx.AsyncClient,
        expiry_leeway: timedelta = timedelta(seconds=60),
        clock: Callable[[], datetime] | None = None,
        **kwargs: Any,
    ) -> Self:
        """Build the shim together with its own :class:`TokenLifecycle`."""
        lifecycle = TokenLifecycle(
            cls.shim_key,
            authorize_url=cls.authorize_url,
            token_url=cls.token_url,
            client=client,
            store=store,
            http=http,
            enhancer=cls.enhancer,
            authorization_params=cls.authorization_params,
            expiry_leeway=expiry_leeway,
            clock=clock,
        )
        return cls(lifecycle, http, **kwargs)

    @property
    @abstractmethod
    def mappers(self) -> MapperTable[Any]:
        """Mapper for every member of :attr:`catalog`."""

    @property
    @abstractmethod
    def query_builder(self) -> QueryBuilder:
        """Builds the provider's data URLs."""

    def data_types(self) -> frozenset[str]:
        return data_type_keys(self.catalog)

    async def fetch(self, request: ShimDataRequest) -> ShimDataResponse:
        """Retrieve one data type for the request's window.

        The data type key is checked before any token or network work.
        """
        data_type = parse_data_type_key(self.catalog, request.data_type_key, self.shim_key)
        window = resolve_window(request.start_date_time, request.end_date_time, today=self._today)

        credential = await self.lifecycle.ensure_valid_token(request.user_key)
        url = self.query_builder.build(data_type.value, window, request.pagination_cursor)

        log = logger.bind(shim=self.shim_key, data_type=data_type.name, user=request.user_key)
        log.debug("shim.request", url=url)
        try:
            resp = await self._http.get(
                url,
                headers={"Authorization": f"Bearer {credential.access_token}"},
            )
        except httpx.RequestError as exc:
            log.error("shim.request_failed", error=str(exc))
            raise UpstreamRequestFailed(f"A request for {self.label} data failed: {exc}") from exc

        if not resp.is_success:
            body = response_body(resp)
            log.error("shim.upstream_error", status=resp.status_code, body=body)
            raise UpstreamRequestFailed(
                f"A request for {self.label} data failed with HTTP {resp.status_code}.",
                status_code=resp.status_code,
                body=body,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise MalformedPayload(f"{self.label} returned a non-JSON body.") from exc

        if not request.normalize:
            log.info("shim.fetched", normalized=False)
            return ShimDataResponse.raw(self.shim_key, payload)

        result = self.mappers.mapper_for(data_type).map(payload)
        log.info("shim.fetched", normalized=True, count=len(result.data_points), skipped=result.skipped)
        return ShimDataResponse.from_mapping(self.shim_key, result)
