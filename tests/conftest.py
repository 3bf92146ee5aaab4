"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from urllib.parse import parse_qsl

import httpx
import pytest
import structlog

from wearable_shims.config import OAuth2ClientSettings
from wearable_shims.models import AccessCredential
from wearable_shims.shims.fitbit import FitbitShim
from wearable_shims.shims.googlefit import GoogleFitShim
from wearable_shims.shims.tokens import InMemoryTokenStore

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)
TODAY = date(2024, 3, 1)


@pytest.fixture(autouse=True)
def uncached_logging(monkeypatch):
    """Loggers must not keep a capture stream that pytest closes after the test."""
    configure = structlog.configure
    monkeypatch.setattr(
        structlog,
        "configure",
        lambda **settings: configure(**{**settings, "cache_logger_on_first_use": False}),
    )
    yield
    structlog.reset_defaults()


class RecordingTransport:
    """Counts and keeps every request before handing it to *handler*."""

    def __init__(self, handler: Callable[[httpx.Request], object]) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        return self.handler(request)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def form_of(request: httpx.Request) -> dict[str, str]:
    return dict(parse_qsl(request.content.decode()))


def step_point(start_s: int, steps, *, length_s: int = 60) -> dict:
    return {
        "startTimeNanos": str(start_s * 1_000_000_000),
        "endTimeNanos": str((start_s + length_s) * 1_000_000_000),
        "dataTypeName": "com.google.step_count.delta",
        "originDataSourceId": "raw:com.google.step_count.cumulative:phone",
        "value": [{"intVal": steps}],
    }


@pytest.fixture
def google_client() -> OAuth2ClientSettings:
    return OAuth2ClientSettings(
        client_id="google-client",
        client_secret="google-secret",
        scopes=["https://www.googleapis.com/auth/fitness.activity.read"],
        redirect_uri="http://localhost:8083/authorize/googlefit/callback",
    )


@pytest.fixture
def fitbit_client() -> OAuth2ClientSettings:
    return OAuth2ClientSettings(
        client_id="fitbit-client",
        client_secret="fitbit-secret",
        scopes=["activity", "sleep"],
        redirect_uri="http://localhost:8083/authorize/fitbit/callback",
    )


@pytest.fixture
def store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def valid_credential() -> AccessCredential:
    return AccessCredential(
        access_token="live-token",
        refresh_token="refresh-1",
        expires_at=NOW + timedelta(hours=1),
    )


@pytest.fixture
def expired_credential() -> AccessCredential:
    return AccessCredential(
        access_token="stale-token",
        refresh_token="refresh-1",
        expires_at=NOW - timedelta(hours=1),
    )


@pytest.fixture
def make_google_shim(google_client, store):
    def _make(transport: RecordingTransport) -> GoogleFitShim:
        return GoogleFitShim.create(
            client=google_client,
            store=store,
            http=transport.client(),
            clock=lambda: NOW,
            today=TODAY,
        )

    return _make


@pytest.fixture
def make_fitbit_shim(fitbit_client, store):
    def _make(transport: RecordingTransport) -> FitbitShim:
        return FitbitShim.create(
            client=fitbit_client,
            store=store,
            http=transport.client(),
            clock=lambda: NOW,
            today=TODAY,
        )

    return _make
