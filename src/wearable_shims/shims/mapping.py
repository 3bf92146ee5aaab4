"""Data point mapper contract shared by every provider."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any, Generic, TypeVar

import structlog

from wearable_shims.errors import UnsupportedDataType
from wearable_shims.models import MappingResult, NormalizedDataPoint

logger = structlog.get_logger(__name__)

CatalogT = TypeVar("CatalogT", bound=Enum)

# Errors a single bad record may raise while being read.
_RECORD_ERRORS = (AttributeError, KeyError, IndexError, TypeError, ValueError)


class DataPointMapper(ABC):
    """Turns one raw provider payload into normalised data points.

    Implementations must be pure: the payload is only read, and the same
    payload always yields the same points in the same order.  A record that
    cannot be read is skipped and counted; only a payload whose overall
    shape is wrong raises :class:`~wearable_shims.errors.MalformedPayload`.
    """

    data_type: str
    source: str

    @abstractmethod
    def records(self, payload: Any) -> list[Any]:
        """Extract the list of raw records, raising ``MalformedPayload`` if impossible."""

    @abstractmethod
    def map_record(self, record: Any) -> NormalizedDataPoint | None:
        """Map one record; ``None`` means the record is deliberately filtered out."""

    def map(self, payload: Any) -> MappingResult:
        points: list[NormalizedDataPoint] = []
        skipped = 0
        for index, record in enumerate(self.records(payload)):
            try:
                point = self.map_record(record)
            except _RECORD_ERRORS as exc:
                skipped += 1
                logger.warning(
                    "mapper.record_skipped",
                    source=self.source,
                    data_type=self.data_type,
                    index=index,
                    error=str(exc),
                )
                continue
            if point is not None:
                points.append(point)

        if skipped:
            logger.info(
                "mapper.mapped_with_skips",
                source=self.source,
                data_type=self.data_type,
                mapped=len(points),
                skipped=skipped,
            )
        return MappingResult(data_points=tuple(points), skipped=skipped)


class MapperTable(Generic[CatalogT]):
    """A total, read-only mapping from every catalog member to its mapper."""

    def __init__(self, catalog: type[CatalogT], mappers: Mapping[CatalogT, DataPointMapper]) -> None:
        missing = [member.name for member in catalog if member not in mappers]
        if missing:
            raise UnsupportedDataType(
                f"{catalog.__name__} has no mapper for: {', '.join(missing)}"
            )
        self._catalog = catalog
        self._mappers = MappingProxyType(dict(mappers))

    def mapper_for(self, data_type: CatalogT) -> DataPointMapper:
        if not isinstance(data_type, self._catalog) or data_type not in self._mappers:
            raise UnsupportedDataType(f"{data_type!r} is not part of {self._catalog.__name__}.")
        return self._mappers[data_type]
