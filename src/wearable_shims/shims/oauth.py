"""OAuth 2.0 token lifecycle shared by every shim.

One :class:`TokenLifecycle` exists per provider.  It owns the per-user
credential state machine::

    no_token → awaiting_user_authorization → valid → expired → refreshing → valid | denied

and is the only place credentials are read, refreshed and written back to
the :class:`~wearable_shims.shims.tokens.TokenStore`.  Provider quirks in the
token calls are injected as a :data:`RequestEnhancer`.
"""

from __future__ import annotations

import asyncio
import base64
import secrets
from collections import defaultdict
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from functools import partial
from typing import Any
from urllib.parse import urlencode

import httpx
import structlog

from wearable_shims.config import OAuth2ClientSettings
from wearable_shims.errors import AuthorizationFailed, ReauthorizationRequired, TokenRefreshFailed
from wearable_shims.models import AccessCredential, TokenState
from wearable_shims.shims.tokens import TokenStore

logger = structlog.get_logger(__name__)

# OAuth 2.0 error codes that mean the grant itself is no longer honoured.
_DENIAL_ERRORS = frozenset({"invalid_grant", "unauthorized_client", "access_denied"})


@dataclass(frozen=True)
class TokenRequest:
    """Form and headers of one call to a token endpoint."""

    grant_type: str
    form: dict[str, str]
    headers: dict[str, str] = field(default_factory=dict)

    def with_form(self, **fields: str) -> TokenRequest:
        return replace(self, form={**self.form, **fields})

    def with_headers(self, **headers: str) -> TokenRequest:
        return replace(self, headers={**self.headers, **headers})


RequestEnhancer = Callable[[TokenRequest, OAuth2ClientSettings], TokenRequest]


def client_secret_basic(request: TokenRequest, client: OAuth2ClientSettings) -> TokenRequest:
    """Authenticate the client with an HTTP Basic header (the OAuth 2.0 default)."""
    basic = base64.b64encode(f"{client.client_id}:{client.client_secret}".encode()).decode()
    return request.with_headers(Authorization=f"Basic {basic}")


def client_secret_post(request: TokenRequest, client: OAuth2ClientSettings) -> TokenRequest:
    """Put the client credentials in the form body of every token call."""
    return request.with_form(client_id=client.client_id, client_secret=client.client_secret)


def response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _is_denial(response: httpx.Response, body: Any) -> bool:
    if response.status_code in (401, 403):
        return True
    return (
        response.status_code == 400
        and isinstance(body, dict)
        and body.get("error") in _DENIAL_ERRORS
    )


class TokenLifecycle:
    """Acquires, validates and refreshes one provider's per-user credentials.

    Refreshes are serialised per user: the first caller that finds an expired
    credential starts a refresh task, and every concurrent caller awaits that
    same task.  Callers await it through :func:`asyncio.shield`, so a caller
    giving up does not cancel a refresh others depend on.  Nothing is retried
    here; a failed refresh is reported and the next call decides again.
    """

    def __init__(
        self,
        shim_key: str,
        *,
        authorize_url: str,
        token_url: str,
        client: OAuth2ClientSettings,
        store: TokenStore,
        http: httpx.AsyncClient,
        enhancer: RequestEnhancer = client_secret_basic,
        authorization_params: Mapping[str, str] | None = None,
        expiry_leeway: timedelta = timedelta(seconds=60),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.shim_key = shim_key
        self.authorize_url = authorize_url
        self.token_url = token_url
        self._client = client
        self._store = store
        self._http = http
        self._enhancer = enhancer
        self._authorization_params = dict(authorization_params or {})
        self._leeway = expiry_leeway
        self._clock = clock or (lambda: datetime.now(UTC))

        self._states: dict[str, TokenState] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._refreshes: dict[str, asyncio.Task[AccessCredential]] = {}
        # One outstanding CSRF state per user; a new consent URL replaces the old one.
        self._pending: dict[str, str] = {}  # state → user key
        self._issued: dict[str, str] = {}  # user key → state

    def token_state(self, user_key: str) -> TokenState:
        return self._states.get(user_key, TokenState.NO_TOKEN)

    # ── Authorization ─────────────────────────────────────────

    def authorization_url(self, user_key: str) -> str:
        """Build the consent URL the user must be redirected to."""
        state = secrets.token_urlsafe(32)
        stale = self._issued.get(user_key)
        if stale is not None:
            del self._pending[stale]
        self._pending[state] = user_key
        self._issued[user_key] = state
        if self.token_state(user_key) is TokenState.NO_TOKEN:
            self._states[user_key] = TokenState.AWAITING_USER_AUTHORIZATION

        params = {
            "state": state,
            "client_id": self._client.client_id,
            "response_type": "code",
            **self._authorization_params,
        }
        if self._client.scopes:
            params["scope"] = self._client.scope
        params["redirect_uri"] = self._client.redirect_uri
        return f"{self.authorize_url}?{urlencode(params)}"

    async def complete_authorization(self, state: str, code: str) -> tuple[str, AccessCredential]:
        """Exchange the code from the provider's redirect for a credential.

        Returns the user key the authorization was started for, together
        with the stored credential.
        """
        user_key = self._pending.pop(state, None)
        if user_key is None:
            raise AuthorizationFailed("Unknown or already used authorization state.")
        del self._issued[user_key]

        request = TokenRequest(
            grant_type="authorization_code",
            form={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self._client.redirect_uri,
            },
        )
        try:
            response = await self._post_token(request)
        except httpx.RequestError as exc:
            raise AuthorizationFailed(f"Token endpoint unreachable: {exc}") from exc

        body = response_body(response)
        credential = self._credential_from(body) if response.is_success else None
        if credential is None:
            logger.error(
                "oauth.token_exchange_failed",
                shim=self.shim_key,
                user=user_key,
                status=response.status_code,
                body=body,
            )
            raise AuthorizationFailed(
                f"{self.shim_key} rejected the authorization code (HTTP {response.status_code})."
            )

        async with self._locks[user_key]:
            # a refresh started under the old grant must not overwrite this credential
            refresh = self._refreshes.get(user_key)
            if refresh is not None:
                await asyncio.wait([refresh])
            await self._store.save(self.shim_key, user_key, credential)
            self._states[user_key] = TokenState.VALID
        logger.info("oauth.authorized", shim=self.shim_key, user=user_key)
        return user_key, credential

    # ── Access ────────────────────────────────────────────────

    async def ensure_valid_token(self, user_key: str) -> AccessCredential:
        """Return a usable credential, refreshing it first if it has expired.

        Parameters
        ----------
        user_key:
            The user whose stored credential is checked.

        Returns
        -------
        AccessCredential
            A credential that is not expired at the lifecycle's clock,
            allowing for the expiry leeway.

        Raises
        ------
        ReauthorizationRequired
            No credential is stored, it expired without a refresh token, or
            the provider denied the refresh.  Carries a fresh consent URL.
        TokenRefreshFailed
            The token endpoint was unreachable, answered with an error, or
            returned no usable ``access_token``.
        """
        async with self._locks[user_key]:
            refresh = self._refreshes.get(user_key)
            if refresh is None:
                if self.token_state(user_key) is TokenState.DENIED:
                    raise self._reauthorization(user_key, "Access was denied by the provider.")

                credential = await self._store.load(self.shim_key, user_key)
                if credential is None:
                    raise self._reauthorization(user_key, "No credential stored for this user.")

                if not credential.is_expired(self._clock(), self._leeway):
                    self._states[user_key] = TokenState.VALID
                    return credential

                self._states[user_key] = TokenState.EXPIRED
                if not credential.refresh_token:
                    raise self._reauthorization(user_key, "Credential expired and cannot be refreshed.")

                self._states[user_key] = TokenState.REFRESHING
                refresh = asyncio.create_task(self._refresh(user_key, credential))
                refresh.add_done_callback(partial(self._refresh_done, user_key))
                self._refreshes[user_key] = refresh

        return await asyncio.shield(refresh)

    async def _refresh(self, user_key: str, credential: AccessCredential) -> AccessCredential:
        request = TokenRequest(
            grant_type="refresh_token",
            form={"grant_type": "refresh_token", "refresh_token": credential.refresh_token or ""},
        )
        try:
            try:
                response = await self._post_token(request)
            except httpx.RequestError as exc:
                raise TokenRefreshFailed(f"Token endpoint unreachable: {exc}") from exc

            body = response_body(response)
            if _is_denial(response, body):
                self._states[user_key] = TokenState.DENIED
                logger.warning(
                    "oauth.refresh_denied",
                    shim=self.shim_key,
                    user=user_key,
                    status=response.status_code,
                )
                raise self._reauthorization(user_key, "The provider denied the token refresh.")
            if not response.is_success:
                raise TokenRefreshFailed(
                    f"Token refresh failed with HTTP {response.status_code}.",
                    status_code=response.status_code,
                    body=body,
                )
            refreshed = self._credential_from(body, previous=credential)
            if refreshed is None:
                raise TokenRefreshFailed(
                    "Token refresh response has no usable access_token.",
                    status_code=response.status_code,
                    body=body,
                )
            await self._store.save(self.shim_key, user_key, refreshed)
        except ReauthorizationRequired:
            raise
        except Exception:
            self._states[user_key] = TokenState.EXPIRED
            logger.exception("oauth.refresh_failed", shim=self.shim_key, user=user_key)
            raise

        self._states[user_key] = TokenState.VALID
        logger.info("oauth.token_refreshed", shim=self.shim_key, user=user_key)
        return refreshed

    def _refresh_done(self, user_key: str, task: asyncio.Task[AccessCredential]) -> None:
        if self._refreshes.get(user_key) is task:
            del self._refreshes[user_key]
        # mark the outcome retrieved even if every waiter has gone away
        if not task.cancelled():
            task.exception()

    async def _post_token(self, request: TokenRequest) -> httpx.Response:
        enhanced = self._enhancer(request, self._client)
        return await self._http.post(
            self.token_url,
            data=enhanced.form,
            headers={"Accept": "application/json", **enhanced.headers},
        )

    def _credential_from(
        self, body: Any, previous: AccessCredential | None = None
    ) -> AccessCredential | None:
        """Parse a token response body; ``None`` if it holds no usable credential."""
        if not isinstance(body, dict):
            return None
        token = body.get("access_token")
        if not isinstance(token, str) or not token:
            return None
        try:
            return AccessCredential.from_token_response(body, now=self._clock(), previous=previous)
        except (TypeError, ValueError):
            return None

    def _reauthorization(self, user_key: str, reason: str) -> ReauthorizationRequired:
        return ReauthorizationRequired(self.authorization_url(user_key), reason=reason)
