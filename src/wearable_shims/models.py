"""Shared Pydantic models used across the shim subsystem."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from wearable_shims.errors import InvalidTimeWindow


def as_utc(value: datetime) -> datetime:
    """Return *value* in UTC; naive datetimes are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# ── Enums ─────────────────────────────────────────────────────

class TokenState(str, Enum):
    """Where one (provider, user) credential sits in its lifecycle."""
    NO_TOKEN = "no_token"
    AWAITING_USER_AUTHORIZATION = "awaiting_user_authorization"
    VALID = "valid"
    EXPIRED = "expired"
    REFRESHING = "refreshing"
    DENIED = "denied"


# ── Requests ──────────────────────────────────────────────────

class ShimDataRequest(BaseModel):
    """A caller's request for one data type from one provider."""
    model_config = ConfigDict(frozen=True)

    provider_key: str
    data_type_key: str | None
    user_key: str
    start_date_time: datetime | date | None = None
    end_date_time: datetime | date | None = None
    normalize: bool = True
    pagination_cursor: str | None = None


class TimeWindow(BaseModel):
    """A resolved ``[start, end)`` range, always in UTC."""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def _check_order(self) -> TimeWindow:
        # InvalidTimeWindow is not a ValueError, so pydantic lets it through as-is
        if not self.start < self.end:
            raise InvalidTimeWindow(
                f"Window start {self.start.isoformat()} must precede end {self.end.isoformat()}."
            )
        return self


# ── Credentials ───────────────────────────────────────────────

class AccessCredential(BaseModel):
    """OAuth 2.0 token pair for one user's provider account."""
    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str | None = None
    token_type: str = "Bearer"
    expires_at: datetime | None = None
    scopes: str = ""

    def is_expired(self, now: datetime, leeway: timedelta = timedelta(0)) -> bool:
        """Tokens without a known expiry are treated as valid."""
        if self.expires_at is None:
            return False
        return as_utc(now) + leeway >= as_utc(self.expires_at)

    @classmethod
    def from_token_response(
        cls,
        body: dict[str, Any],
        *,
        now: datetime,
        previous: AccessCredential | None = None,
    ) -> AccessCredential:
        """Build a credential from a token endpoint's JSON body.

        Some providers (Google among them) never rotate refresh tokens and
        leave ``refresh_token`` out of refresh responses; the previous refresh
        token is carried over in that case.
        """
        refresh_token = body.get("refresh_token") or None
        if refresh_token is None and previous is not None:
            refresh_token = previous.refresh_token
        expires_in = body.get("expires_in")
        expires_at = as_utc(now) + timedelta(seconds=int(expires_in)) if expires_in is not None else None
        scopes = body.get("scope")
        if scopes is None:
            scopes = previous.scopes if previous is not None else ""
        return cls(
            access_token=body["access_token"],
            refresh_token=refresh_token,
            token_type=body.get("token_type") or "Bearer",
            expires_at=expires_at,
            scopes=scopes,
        )


# ── Normalised output ─────────────────────────────────────────

class TimeInterval(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> TimeInterval:
        if not self.start < self.end:
            raise ValueError("interval start must precede its end")
        return self


class Provenance(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    source_stream_id: str
    origin_id: str | None = None


class NormalizedDataPoint(BaseModel):
    """One canonical measurement, either at an instant or over an interval."""
    model_config = ConfigDict(frozen=True)

    data_type: str
    timestamp: datetime | None = None
    interval: TimeInterval | None = None
    value: float | str | dict[str, float]
    unit: str
    provenance: Provenance

    @model_validator(mode="after")
    def _check_time(self) -> NormalizedDataPoint:
        if (self.timestamp is None) == (self.interval is None):
            raise ValueError("exactly one of timestamp or interval must be set")
        return self


class MappingResult(BaseModel):
    """Mapper output: the points produced and how many records were skipped."""
    model_config = ConfigDict(frozen=True)

    data_points: tuple[NormalizedDataPoint, ...] = ()
    skipped: int = 0


class ShimDataResponse(BaseModel):
    """Terminal artifact handed back to the caller.

    ``body`` is the provider's untouched JSON when ``normalized`` is false and
    a list of :class:`NormalizedDataPoint` otherwise.
    """
    model_config = ConfigDict(frozen=True)

    provider_key: str
    body: Any
    normalized: bool = False
    skipped_records: int = 0

    @classmethod
    def raw(cls, provider_key: str, body: Any) -> ShimDataResponse:
        return cls(provider_key=provider_key, body=body)

    @classmethod
    def from_mapping(cls, provider_key: str, result: MappingResult) -> ShimDataResponse:
        return cls(
            provider_key=provider_key,
            body=list(result.data_points),
            normalized=True,
            skipped_records=result.skipped,
        )
