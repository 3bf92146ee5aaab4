"""Exception hierarchy for the shim subsystem.

Shims raise these; :class:`wearable_shims.service.ShimService` turns them into
result variants at the caller boundary.
"""

from __future__ import annotations

from typing import Any


class ShimError(Exception):
    """Base class for every error the shim subsystem raises."""


class InvalidDataTypeKey(ShimError):
    """The data type key is absent or not in the provider's catalog."""

    def __init__(self, data_type_key: str | None, shim_key: str = "") -> None:
        self.data_type_key = data_type_key
        self.shim_key = shim_key
        super().__init__(
            f"Null or invalid data type key {data_type_key!r}"
            + (f" for shim {shim_key!r}" if shim_key else "")
            + ", cannot retrieve data."
        )


class InvalidTimeWindow(ShimError):
    """The resolved window does not satisfy ``start < end``."""


class UnknownProvider(ShimError):
    """No shim is registered under the requested key."""

    def __init__(self, provider_key: str, available: list[str] | None = None) -> None:
        self.provider_key = provider_key
        self.available = available or []
        super().__init__(
            f"No shim registered for {provider_key!r}. Available: {self.available}"
        )


class UnsupportedDataType(ShimError):
    """No mapper exists for a data type."""


class ReauthorizationRequired(ShimError):
    """The user has to (re-)authorize access; carries the redirect target."""

    def __init__(self, authorization_url: str, reason: str = "") -> None:
        self.authorization_url = authorization_url
        self.reason = reason
        super().__init__(reason or "User authorization required.")


class AuthorizationFailed(ShimError):
    """Exchanging an authorization code for tokens did not succeed."""


class TokenRefreshFailed(ShimError):
    """A refresh call failed for transport or protocol reasons (not a denial)."""

    def __init__(self, message: str, status_code: int | None = None, body: Any = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class UpstreamRequestFailed(ShimError):
    """The provider's data endpoint answered with an error or was unreachable.

    ``status_code`` and ``body`` hold the provider's diagnostic as received;
    ``status_code`` is ``None`` for transport-level failures.
    """

    def __init__(self, message: str, status_code: int | None = None, body: Any = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class MalformedPayload(ShimError):
    """A response body is structurally invalid and cannot be mapped at all."""
