from datetime import date, datetime, timedelta, timezone

from datetime_utils import (
    UTC,
    format_br_date,
    format_br_time,
    format_br_timestamp,
    parse_br_date,
    parse_iso,
    to_iso_utc,
    utc_now,
)


def test_to_iso_utc_uses_z_and_milliseconds():
    dt = datetime(2026, 1, 10, 11, 0, 5, 123456, tzinfo=UTC)
    assert to_iso_utc(dt) == "2026-01-10T11:00:05.123Z"


def test_to_iso_utc_converts_offsets():
    brt = timezone(timedelta(hours=-3))
    assert to_iso_utc(datetime(2026, 1, 10, 8, 0, tzinfo=brt)) == "2026-01-10T11:00:00.000Z"
    assert to_iso_utc(None) is None


def test_parse_iso_roundtrip_and_garbage():
    now = utc_now()
    parsed = parse_iso(to_iso_utc(now))
    assert parsed.tzinfo is not None
    assert abs(parsed - now) < timedelta(milliseconds=1)
    assert parse_iso("not a date") is None
    assert parse_iso("  ") is None


def test_brazilian_formats():
    dt = datetime(2026, 3, 7, 9, 5, 2)
    assert format_br_date(dt) == "07/03/2026"
    assert format_br_time(dt) == "09:05"
    assert format_br_timestamp(dt) == "07/03/2026 09:05:02"


def test_parse_br_date_accepts_both_orders():
    assert parse_br_date("07/03/2026") == date(2026, 3, 7)
    assert parse_br_date("2026-03-07") == date(2026, 3, 7)
    assert parse_br_date("31/02/2026") is None
    assert parse_br_date("") is None
