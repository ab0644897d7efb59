from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from clinic.core.errors import InvalidInput, InvalidTimestamp
from clinic.core.timeutils import format_local, hours_between, normalize_timestamp

COLOMBO = ZoneInfo("Asia/Colombo")


class TestNormalizeTimestamp:
    def test_utc_marker_is_kept(self):
        result = normalize_timestamp("2025-03-04T10:00:00Z", COLOMBO)
        assert result == datetime(2025, 3, 4, 10, 0, tzinfo=timezone.utc)

    def test_explicit_offset_is_kept(self):
        result = normalize_timestamp("2025-03-04T12:00:00+02:00", COLOMBO)
        assert result == datetime(2025, 3, 4, 10, 0, tzinfo=timezone.utc)

    def test_naive_string_is_clinic_local_time(self):
        result = normalize_timestamp("2025-03-04T15:30:00", COLOMBO)
        assert result == datetime(2025, 3, 4, 10, 0, tzinfo=timezone.utc)

    def test_naive_datetime_is_clinic_local_time(self):
        result = normalize_timestamp(datetime(2025, 3, 4, 15, 30), COLOMBO)
        assert result == datetime(2025, 3, 4, 10, 0, tzinfo=timezone.utc)

    def test_result_is_always_utc(self):
        result = normalize_timestamp(datetime(2025, 3, 4, 15, 30, tzinfo=COLOMBO), COLOMBO)
        assert result.utcoffset().total_seconds() == 0

    @pytest.mark.parametrize("value", ["", "   ", "not-a-date", "2025-13-40T10:00:00"])
    def test_unparseable_strings_raise(self, value):
        with pytest.raises(InvalidTimestamp):
            normalize_timestamp(value, COLOMBO)

    @pytest.mark.parametrize("value", [None, 1741082400, 3.5])
    def test_unsupported_types_raise(self, value):
        with pytest.raises(InvalidTimestamp):
            normalize_timestamp(value, COLOMBO)

    def test_invalid_timestamp_is_invalid_input(self):
        assert issubclass(InvalidTimestamp, InvalidInput)


def test_hours_between_can_be_negative():
    start = datetime(2025, 3, 4, 10, 0, tzinfo=timezone.utc)
    end = datetime(2025, 3, 4, 8, 30, tzinfo=timezone.utc)
    assert hours_between(start, end) == -1.5


def test_format_local_uses_clinic_zone():
    value = datetime(2025, 3, 4, 10, 0, tzinfo=timezone.utc)
    assert format_local(value, COLOMBO) == "Mar 04, 2025 at 03:30 PM"
