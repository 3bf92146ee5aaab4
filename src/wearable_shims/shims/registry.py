"""Shim registry: resolve provider shims by key.

Shims are registered once at startup, then the registry is frozen; lookups
after that touch only a read-only mapping.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from types import MappingProxyType

import httpx
import structlog

from wearable_shims.config import Settings
from wearable_shims.errors import UnknownProvider
from wearable_shims.shims.base import ProviderShim
from wearable_shims.shims.fitbit import FitbitShim
from wearable_shims.shims.googlefit import GoogleFitShim
from wearable_shims.shims.tokens import TokenStore

logger = structlog.get_logger(__name__)


class ShimRegistry:
    def __init__(self) -> None:
        self._shims: Mapping[str, ProviderShim] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, shim: ProviderShim) -> None:
        """Register *shim* under its ``shim_key``; only allowed before :meth:`freeze`."""
        if self._frozen:
            raise RuntimeError("Shim registry is frozen; register shims at startup.")
        if shim.shim_key in self._shims:
            raise ValueError(f"A shim is already registered for {shim.shim_key!r}.")
        self._shims = {**self._shims, shim.shim_key: shim}
        logger.info("registry.registered", shim=shim.shim_key)

    def freeze(self) -> ShimRegistry:
        self._shims = MappingProxyType(dict(self._shims))
        self._frozen = True
        return self

    def resolve(self, key: str) -> ProviderShim:
        """Return the shim for *key*.

        Raises :class:`UnknownProvider` if no shim is registered.
        """
        shim = self._shims.get(key.strip().lower())
        if shim is None:
            raise UnknownProvider(key, self.available())
        return shim

    def available(self) -> list[str]:
        """Return the keys of every registered shim."""
        return sorted(self._shims)


def build_registry(settings: Settings, http: httpx.AsyncClient, store: TokenStore) -> ShimRegistry:
    """Create the process-wide registry with every shipped shim, frozen."""
    leeway = timedelta(seconds=settings.token_expiry_leeway_seconds)
    registry = ShimRegistry()
    registry.register(
        GoogleFitShim.create(
            client=settings.client_settings(GoogleFitShim.shim_key),
            store=store,
            http=http,
            expiry_leeway=leeway,
        )
    )
    registry.register(
        FitbitShim.create(
            client=settings.client_settings(FitbitShim.shim_key),
            store=store,
            http=http,
            expiry_leeway=leeway,
            api_base_url=settings.fitbit_api_base_url,
        )
    )
    return registry.freeze()
