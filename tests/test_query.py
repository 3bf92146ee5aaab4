"""Tests for time-window resolution and provider URL building."""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from conftest import TODAY
from wearable_shims.errors import InvalidTimeWindow
from wearable_shims.models import TimeWindow
from wearable_shims.shims.fitbit import FitbitDataType, FitbitQueryBuilder
from wearable_shims.shims.googlefit import GoogleFitDataType, GoogleFitQueryBuilder
from wearable_shims.shims.query import QueryBuilder, from_epoch_nanos, resolve_window, to_epoch_nanos


class TestResolveWindow:
    def test_defaults_to_day_before_through_day_after_today(self):
        window = resolve_window(None, None, today=TODAY)
        assert window.start == datetime(2024, 2, 29, tzinfo=UTC)
        assert window.end == datetime(2024, 3, 2, tzinfo=UTC)

    def test_end_only_includes_the_whole_end_day(self):
        window = resolve_window(None, date(2024, 3, 10), today=TODAY)
        assert window.start == datetime(2024, 2, 29, tzinfo=UTC)
        assert window.end == datetime(2024, 3, 11, tzinfo=UTC)

    def test_end_datetime_is_truncated_to_its_utc_day(self):
        end = datetime(2024, 3, 10, 2, 0, tzinfo=timezone(timedelta(hours=5)))
        window = resolve_window(None, end, today=TODAY)
        # 02:00+05:00 is still March 9th in UTC
        assert window.end == datetime(2024, 3, 10, tzinfo=UTC)

    def test_start_is_converted_to_utc(self):
        start = datetime(2024, 3, 5, 8, 30, tzinfo=timezone(timedelta(hours=-4)))
        window = resolve_window(start, date(2024, 3, 6), today=TODAY)
        assert window.start == datetime(2024, 3, 5, 12, 30, tzinfo=UTC)
        assert window.start.tzinfo == UTC

    def test_naive_datetimes_are_read_as_utc(self):
        window = resolve_window(datetime(2024, 1, 1, 6), None, today=TODAY)
        assert window.start == datetime(2024, 1, 1, 6, tzinfo=UTC)

    def test_start_after_end_is_rejected(self):
        with pytest.raises(InvalidTimeWindow):
            resolve_window(date(2024, 3, 20), date(2024, 3, 10), today=TODAY)

    def test_time_window_requires_start_before_end(self):
        instant = datetime(2024, 3, 1, tzinfo=UTC)
        with pytest.raises(InvalidTimeWindow):
            TimeWindow(start=instant, end=instant)


class TestEpochNanos:
    def test_epoch_and_microseconds(self):
        assert to_epoch_nanos(datetime(1970, 1, 1, tzinfo=UTC)) == 0
        assert to_epoch_nanos(datetime(1970, 1, 1, 0, 0, 0, 1, tzinfo=UTC)) == 1_000

    def test_near_epoch(self):
        assert to_epoch_nanos(datetime(2024, 2, 29, tzinfo=UTC)) == 1_709_164_800_000_000_000

    def test_before_epoch(self):
        assert to_epoch_nanos(datetime(1900, 1, 1, tzinfo=UTC)) == -2_208_988_800_000_000_000

    def test_far_from_epoch_is_exact(self):
        # beyond 2**53, where a float round-trip would lose digits
        assert to_epoch_nanos(datetime(2262, 4, 11, 23, 47, 16, 854775, tzinfo=UTC)) == 9_223_372_036_854_775_000
        assert (
            to_epoch_nanos(datetime(9999, 12, 31, 23, 59, 59, 999999, tzinfo=UTC))
            == 253_402_300_799_999_999_000
        )

    def test_from_epoch_nanos_inverts(self):
        instant = datetime(2262, 4, 11, 23, 47, 16, 854775, tzinfo=UTC)
        assert from_epoch_nanos(to_epoch_nanos(instant)) == instant


class TestQueryBuilders:
    def test_google_fit_dataset_url(self):
        window = resolve_window(None, None, today=TODAY)
        url = GoogleFitQueryBuilder().build(GoogleFitDataType.STEP_COUNT.value, window)
        assert url == (
            "https://www.googleapis.com/fitness/v1/users/me/dataSources/"
            "derived:com.google.step_count.delta:com.google.android.gms:merge_step_deltas"
            "/datasets/1709164800000000000-1709337600000000000"
        )

    def test_google_fit_ignores_cursor_while_paging_is_disabled(self):
        window = resolve_window(None, None, today=TODAY)
        builder = GoogleFitQueryBuilder()
        assert builder.build("stream", window, "next-page") == builder.build("stream", window)

    def test_fitbit_range_url_has_inclusive_last_day(self):
        window = resolve_window(date(2024, 3, 1), date(2024, 3, 7), today=TODAY)
        url = FitbitQueryBuilder().build(FitbitDataType.STEP_COUNT.value, window)
        assert url == "https://api.fitbit.com/1/user/-/activities/steps/date/2024-03-01/2024-03-07.json"

    def test_fitbit_base_url_is_configurable(self):
        window = resolve_window(None, None, today=TODAY)
        url = FitbitQueryBuilder("http://fitbit.test/").build(FitbitDataType.SLEEP_DURATION.value, window)
        assert url == "http://fitbit.test/1.2/user/-/sleep/date/2024-02-29/2024-03-01.json"

    def test_paging_parameters_when_enabled(self):
        class PagedBuilder(QueryBuilder):
            paging_enabled = True
            page_size = 500

            def base_url(self, stream_id, window):
                return f"https://provider.test/{stream_id}"

        window = resolve_window(None, None, today=TODAY)
        assert PagedBuilder().build("s", window) == "https://provider.test/s?limit=500"
        assert PagedBuilder().build("s", window, "abc") == "https://provider.test/s?limit=500&pageToken=abc"
