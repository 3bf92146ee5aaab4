"""Token store contract consumed by the OAuth lifecycle."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from wearable_shims.models import AccessCredential


@runtime_checkable
class TokenStore(Protocol):
    """Persists credentials per (provider, user).

    Durability and consistency are the store's concern; the lifecycle saves
    after every successful authorization or refresh.
    """

    async def load(self, provider_key: str, user_key: str) -> AccessCredential | None: ...

    async def save(self, provider_key: str, user_key: str, credential: AccessCredential) -> None: ...


class InMemoryTokenStore:
    """Process-local store, for tests and one-off CLI runs."""

    def __init__(self) -> None:
        self._tokens: dict[tuple[str, str], AccessCredential] = {}

    async def load(self, provider_key: str, user_key: str) -> AccessCredential | None:
        return self._tokens.get((provider_key, user_key))

    async def save(self, provider_key: str, user_key: str, credential: AccessCredential) -> None:
        self._tokens[(provider_key, user_key)] = credential
