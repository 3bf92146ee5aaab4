"""Data type catalogs: closed per-provider tables of key → native stream id.

Each provider declares its catalog as a ``str`` enum whose member *names* are
the caller-facing data type keys and whose *values* are the provider's stream
identifiers::

    class GoogleFitDataType(str, Enum):
        STEP_COUNT = "derived:com.google.step_count.delta:..."
"""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

from wearable_shims.errors import InvalidDataTypeKey

CatalogT = TypeVar("CatalogT", bound=Enum)


def data_type_keys(catalog: type[Enum]) -> frozenset[str]:
    """All data type keys a catalog declares."""
    return frozenset(member.name for member in catalog)


def parse_data_type_key(catalog: type[CatalogT], raw_key: str | None, shim_key: str = "") -> CatalogT:
    """Look *raw_key* up in *catalog*, trimmed and case-insensitively.

    Raises :class:`InvalidDataTypeKey` for absent or unknown keys; there is
    no fallback member.
    """
    if raw_key is None or not raw_key.strip():
        raise InvalidDataTypeKey(raw_key, shim_key)
    try:
        return catalog[raw_key.strip().upper()]
    except KeyError:
        raise InvalidDataTypeKey(raw_key, shim_key) from None
