"""Centralised shim settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class OAuth2ClientSettings(BaseModel):
    """Client registration for one provider's OAuth 2.0 app."""

    client_id: str = ""
    client_secret: str = ""
    scopes: list[str] = Field(default_factory=list)
    redirect_uri: str = ""

    @property
    def scope(self) -> str:
        """Scopes in the space-delimited form used on the wire."""
        return " ".join(self.scopes)


class Settings(BaseSettings):
    """All runtime configuration for the shim subsystem.

    Values are read from environment variables first, then from a *.env* file
    located at the project root.  Every variable lives in one flat namespace,
    e.g. ``GOOGLEFIT_CLIENT_ID`` or ``FITBIT_SCOPES='["activity","sleep"]'``.
    """

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Google Fit OAuth 2 ────────────────────────────────────
    googlefit_client_id: str = ""
    googlefit_client_secret: str = ""
    googlefit_scopes: list[str] = Field(
        default_factory=lambda: [
            "https://www.googleapis.com/auth/fitness.activity.read",
            "https://www.googleapis.com/auth/fitness.body.read",
            "https://www.googleapis.com/auth/fitness.location.read",
        ]
    )

    # ── Fitbit OAuth 2 ────────────────────────────────────────
    fitbit_client_id: str = ""
    fitbit_client_secret: str = ""
    fitbit_scopes: list[str] = Field(
        default_factory=lambda: ["activity", "heartrate", "sleep", "weight"]
    )
    fitbit_api_base_url: str = "https://api.fitbit.com"

    # ── Shared behaviour ──────────────────────────────────────
    shim_redirect_base_url: str = "http://localhost:8083"
    request_timeout: float = 30.0
    token_expiry_leeway_seconds: int = 60  # refresh slightly before the provider's expiry
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    def redirect_uri(self, shim_key: str) -> str:
        """Callback URL registered with the provider for *shim_key*."""
        return f"{self.shim_redirect_base_url.rstrip('/')}/authorize/{shim_key}/callback"

    def client_settings(self, shim_key: str) -> OAuth2ClientSettings:
        """Collect the flat ``<shim>_*`` fields into one :class:`OAuth2ClientSettings`."""
        try:
            return OAuth2ClientSettings(
                client_id=getattr(self, f"{shim_key}_client_id"),
                client_secret=getattr(self, f"{shim_key}_client_secret"),
                scopes=list(getattr(self, f"{shim_key}_scopes")),
                redirect_uri=self.redirect_uri(shim_key),
            )
        except AttributeError:
            raise ValueError(f"No client settings for shim {shim_key!r}.") from None


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
