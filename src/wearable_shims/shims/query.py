"""Time-window resolution and provider query construction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta
from urllib.parse import urlencode

from wearable_shims.models import TimeWindow, as_utc

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
NANOS_PER_SECOND = 1_000_000_000


def _start_of_day(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=UTC)


def _as_instant(value: datetime | date) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    return _start_of_day(value)


def resolve_window(
    start: datetime | date | None,
    end: datetime | date | None,
    *,
    today: date | None = None,
) -> TimeWindow:
    """Resolve optional request bounds into a concrete UTC window.

    Parameters
    ----------
    start:
        Window start; a ``date`` means 00:00 UTC that day and naive
        datetimes are read as UTC.  Defaults to 00:00 UTC of yesterday.
    end:
        Last day to include.  The window ends at 00:00 UTC of the day after
        its UTC date.  Defaults to 00:00 UTC of tomorrow.
    today:
        Reference day for the defaults; the current UTC date if omitted.

    Returns
    -------
    TimeWindow
        Timezone-aware UTC bounds with ``start < end``.

    Raises
    ------
    InvalidTimeWindow
        If the resolved start is not before the resolved end.
    """
    today_start = _start_of_day(today or datetime.now(UTC).date())

    start_instant = today_start - timedelta(days=1) if start is None else _as_instant(start)

    if end is None:
        end_instant = today_start + timedelta(days=1)
    else:
        end_instant = _start_of_day(_as_instant(end).date()) + timedelta(days=1)

    return TimeWindow(start=start_instant, end=end_instant)


def to_epoch_nanos(value: datetime) -> int:
    """Nanoseconds since the Unix epoch, using integer arithmetic only."""
    delta = as_utc(value) - EPOCH
    epoch_seconds = delta.days * 86_400 + delta.seconds
    return epoch_seconds * NANOS_PER_SECOND + delta.microseconds * 1_000


def from_epoch_nanos(nanos: int) -> datetime:
    """Inverse of :func:`to_epoch_nanos` (sub-microsecond digits are dropped)."""
    seconds, remainder = divmod(int(nanos), NANOS_PER_SECOND)
    return EPOCH + timedelta(seconds=seconds, microseconds=remainder // 1_000)


class QueryBuilder(ABC):
    """Builds the provider-native data URL for one stream and window.

    Paging is a per-provider switch: some providers document ``limit`` and
    page-token parameters that are broken in practice, so those builders
    leave them off entirely.
    """

    paging_enabled: bool = False
    page_param: str = "pageToken"
    limit_param: str = "limit"
    page_size: int | None = None

    @abstractmethod
    def base_url(self, stream_id: str, window: TimeWindow) -> str:
        """The URL for *stream_id* over *window*, without paging parameters."""

    def build(self, stream_id: str, window: TimeWindow, cursor: str | None = None) -> str:
        url = self.base_url(stream_id, window)
        if not self.paging_enabled:
            return url

        params: dict[str, str | int] = {}
        if self.page_size is not None:
            params[self.limit_param] = self.page_size
        if cursor:
            params[self.page_param] = cursor
        if not params:
            return url
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{urlencode(params)}"
