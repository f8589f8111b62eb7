"""
Reminder timestamp codec: wire (RFC 3339) <-> storage text.
"""
import datetime as dt

import pytest

from todo_backend.services import timestamps
from todo_backend.services.timestamps import TimestampError


UTC = dt.timezone.utc


class TestWritePath:

    def test_utc_zulu(self):
        assert timestamps.to_storage("2024-01-01T00:00:00Z") == "2024-01-01 00:00:00.000000"

    def test_offset_is_normalized_to_utc(self):
        assert timestamps.to_storage("2024-06-30T12:34:56.789012+02:00") == "2024-06-30 10:34:56.789012"
        assert timestamps.to_storage("2024-12-31T23:30:00-01:00") == "2025-01-01 00:30:00.000000"

    def test_nanosecond_digits_with_zero_tail_are_exact(self):
        assert timestamps.to_storage("2024-01-01T00:00:00.123456000Z") == "2024-01-01 00:00:00.123456"

    def test_none_means_no_reminder(self):
        assert timestamps.to_storage(None) is None

    def test_aware_datetime(self):
        value = dt.datetime(2024, 3, 1, 9, 0, tzinfo=dt.timezone(dt.timedelta(hours=9)))
        assert timestamps.to_storage(value) == "2024-03-01 00:00:00.000000"

    @pytest.mark.parametrize("bad", [
        "",
        "yesterday",
        "2024-01-01",
        "2024-01-01T00:00:00",          # no offset
        "2024-13-01T00:00:00Z",         # month
        "2024-02-30T00:00:00Z",         # day
        "2024-01-01T24:00:00Z",         # hour
        "2024-01-01T00:00:60Z",         # leap second
        "2024-01-01T00:00:00+24:00",    # offset
        "2024-01-01T00:00:00.1234567Z", # sub-microsecond
        "0000-01-01T00:00:00Z",
        "0001-01-01T00:00:00+01:00",    # before year 1 in UTC
        "9999-12-31T23:00:00-01:00",    # after year 9999 in UTC
    ])
    def test_rejects_malformed(self, bad):
        with pytest.raises(TimestampError):
            timestamps.to_storage(bad)

    def test_rejects_naive_datetime(self):
        with pytest.raises(TimestampError):
            timestamps.to_storage(dt.datetime(2024, 1, 1))

    def test_rejects_other_types(self):
        with pytest.raises(TimestampError):
            timestamps.to_storage(1704067200)

    def test_range_edges(self):
        assert timestamps.to_storage("0001-01-01T00:00:00Z") == "0001-01-01 00:00:00.000000"
        assert timestamps.to_storage("9999-12-31T23:59:59.999999Z") == "9999-12-31 23:59:59.999999"


class TestReadPath:

    def test_storage_text(self):
        assert timestamps.from_storage("2024-01-01 00:00:00.000000") == "2024-01-01T00:00:00Z"
        assert timestamps.from_storage("2024-01-01 00:00:00.500000") == "2024-01-01T00:00:00.500Z"
        assert timestamps.from_storage("2024-01-01 00:00:00.000001") == "2024-01-01T00:00:00.000001Z"

    def test_offsets_from_foreign_writers(self):
        assert timestamps.from_storage("2024-01-01T08:00:00+08:00") == "2024-01-01T00:00:00Z"
        assert timestamps.from_storage(b"2024-01-01 00:00:00") == "2024-01-01T00:00:00Z"

    def test_null(self):
        assert timestamps.from_storage(None) is None

    @pytest.mark.parametrize("bad", ["garbage", "2024-99-01 00:00:00", 12345, 1.5])
    def test_rejects_garbage(self, bad):
        with pytest.raises(TimestampError):
            timestamps.from_storage(bad)


def test_round_trip_is_exact():
    for wire in ("2024-01-01T00:00:00Z", "1999-12-31T23:59:59.999Z", "2030-07-04T04:05:06.000007Z"):
        assert timestamps.from_storage(timestamps.to_storage(wire)) == wire


def test_format_wire_digits():
    assert timestamps.format_wire(dt.datetime(2024, 1, 1, tzinfo=UTC)) == "2024-01-01T00:00:00Z"
    assert timestamps.format_wire(dt.datetime(2024, 1, 1, 0, 0, 0, 120000, tzinfo=UTC)) == "2024-01-01T00:00:00.120Z"
    assert timestamps.format_wire(dt.datetime(2024, 1, 1, 0, 0, 0, 123456, tzinfo=UTC)) == "2024-01-01T00:00:00.123456Z"
    assert timestamps.format_wire(None) is None


@pytest.mark.parametrize("padded", [" 2024-01-01T00:00:00Z", "2024-01-01T00:00:00Z\n", "2024-01-01T00:00:00Z "])
def test_surrounding_whitespace_is_rejected(padded):
    with pytest.raises(TimestampError):
        timestamps.to_storage(padded)
