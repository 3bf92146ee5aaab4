"""Result variants returned by the caller-facing service.

Callers match on the variant instead of catching exceptions::

    match await service.fetch("googlefit", "step_count", user_key="u1"):
        case Fetched(response):
            ...
        case RedirectRequired(url):
            ...
        case Failed(error):
            ...
"""

from __future__ import annotations

from dataclasses import dataclass

from wearable_shims.errors import ShimError
from wearable_shims.models import ShimDataResponse


@dataclass(frozen=True, slots=True)
class Fetched:
    response: ShimDataResponse


@dataclass(frozen=True, slots=True)
class RedirectRequired:
    """The user must visit ``authorization_url`` before data can be fetched."""

    authorization_url: str
    reason: str = ""


@dataclass(frozen=True, slots=True)
class Failed:
    error: ShimError

    @property
    def kind(self) -> str:
        return type(self.error).__name__


FetchResult = Fetched | RedirectRequired | Failed
