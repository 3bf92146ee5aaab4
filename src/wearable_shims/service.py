"""Caller-facing entry point to the shim subsystem.

HTTP layers, CLIs and batch jobs go through :class:`ShimService`; it never
raises :class:`~wearable_shims.errors.ShimError` but returns a
:data:`~wearable_shims.results.FetchResult` instead.
"""

from __future__ import annotations

from datetime import date, datetime

import structlog

from wearable_shims.errors import ReauthorizationRequired, ShimError
from wearable_shims.models import AccessCredential, ShimDataRequest
from wearable_shims.results import Failed, Fetched, FetchResult, RedirectRequired
from wearable_shims.shims.registry import ShimRegistry

logger = structlog.get_logger(__name__)


class ShimService:
    """Fetch normalised or raw provider data through the registered shims."""

    def __init__(self, registry: ShimRegistry) -> None:
        self.registry = registry

    async def fetch(
        self,
        provider_key: str,
        data_type_key: str | None,
        start: datetime | date | None = None,
        end: datetime | date | None = None,
        normalize: bool = True,
        *,
        user_key: str,
        cursor: str | None = None,
    ) -> FetchResult:
        """Fetch one data type for one user from one provider.

        Parameters
        ----------
        provider_key:
            Registered shim key, matched case-insensitively.
        data_type_key:
            Catalog key such as ``"step_count"``; ``None`` or blank is rejected
            before any network call.
        start, end:
            Optional window bounds.  A ``date`` means 00:00 UTC of that day and
            ``end`` covers its whole UTC day.
        normalize:
            Map the payload to data points; ``False`` returns it untouched.
        user_key:
            Whose credential is used.
        cursor:
            Pagination cursor, forwarded only to shims that page.

        Returns
        -------
        FetchResult
            :class:`Fetched`, :class:`RedirectRequired` when the user has to
            (re)authorize, or :class:`Failed` wrapping the :class:`ShimError`.
        """
        request = ShimDataRequest(
            provider_key=provider_key,
            data_type_key=data_type_key,
            user_key=user_key,
            start_date_time=start,
            end_date_time=end,
            normalize=normalize,
            pagination_cursor=cursor,
        )
        return await self.fetch_request(request)

    async def fetch_request(self, request: ShimDataRequest) -> FetchResult:
        log = logger.bind(shim=request.provider_key, data_type=request.data_type_key, user=request.user_key)
        try:
            shim = self.registry.resolve(request.provider_key)
            response = await shim.fetch(request)
        except ReauthorizationRequired as exc:
            log.info("service.redirect_required", reason=exc.reason)
            return RedirectRequired(exc.authorization_url, exc.reason)
        except ShimError as exc:
            log.warning("service.fetch_failed", error_kind=type(exc).__name__, error=str(exc))
            return Failed(exc)
        return Fetched(response)

    def authorization_url(self, provider_key: str, user_key: str) -> str:
        """Consent URL to send *user_key* to for *provider_key*."""
        return self.registry.resolve(provider_key).lifecycle.authorization_url(user_key)

    async def complete_authorization(
        self, provider_key: str, state: str, code: str
    ) -> tuple[str, AccessCredential]:
        """Finish the redirect round-trip; returns ``(user_key, credential)``."""
        shim = self.registry.resolve(provider_key)
        return await shim.lifecycle.complete_authorization(state, code)
