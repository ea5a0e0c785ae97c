import time
from datetime import datetime, timedelta, timezone

import pytest

from promcommon.timestamp import (
    SECOND,
    Duration,
    Interval,
    Time,
    parse_duration,
)

DURATION_CASES = [
    ("0", timedelta(0), "0s"),
    ("0w", timedelta(0), "0s"),
    ("0s", timedelta(0), "0s"),
    ("324ms", timedelta(milliseconds=324), "324ms"),
    ("3s", timedelta(seconds=3), "3s"),
    ("5m", timedelta(minutes=5), "5m"),
    ("1h", timedelta(hours=1), "1h"),
    ("4d", timedelta(days=4), "4d"),
    ("4d1h", timedelta(days=4, hours=1), "4d1h"),
    ("14d", timedelta(days=14), "2w"),
    ("3w", timedelta(weeks=3), "3w"),
    ("3w2d1h", timedelta(weeks=3, days=2, hours=1), "23d1h"),
    ("10y", timedelta(days=10 * 365), "10y"),
]


def test_comparators():
    t1a = Time.from_unix(0)
    t1b = Time.from_unix(0)
    t2 = Time.from_unix(2 * SECOND - 1)

    assert t1a == t1b
    assert t1a != t2
    assert t1a.before(t2)
    assert not t1a.before(t1b)
    assert t2.after(t1a)
    assert not t1b.after(t1a)


def test_time_conversions():
    unix_secs = 1136239445
    unix_nsecs = 123456789
    unix_nano = unix_secs * 10**9 + unix_nsecs
    expected = datetime.fromtimestamp(unix_secs, timezone.utc) + timedelta(
        microseconds=(unix_nsecs - unix_nsecs % 1_000_000) // 1000
    )

    ts = Time.from_unix_nano(unix_nano)
    assert ts.to_datetime() == expected
    assert ts.unix_nano() == unix_nano - unix_nano % 1_000_000
    assert ts.unix() == unix_secs


def test_duration_arithmetic():
    duration = timedelta(hours=1, minutes=1, seconds=1)
    go_time = datetime.fromtimestamp(1136239445, timezone.utc)

    ts = Time.from_unix(1136239445)
    assert ts.add(duration).to_datetime() == go_time + duration

    earlier = ts.add(-duration)
    assert ts.sub(earlier).to_timedelta() == duration


def test_add_duration_value():
    ts = Time.from_unix(10)
    assert ts.add(parse_duration("1s")) == Time.from_unix(11)


def test_now_is_current():
    before = time.time_ns() // 1_000_000
    now = Time.now()
    after = time.time_ns() // 1_000_000
    assert before <= now <= after


@pytest.mark.parametrize("text,expected,as_string", DURATION_CASES)
def test_parse_duration(text, expected, as_string):
    d = parse_duration(text)
    assert d.to_timedelta() == expected
    assert str(d) == as_string


@pytest.mark.parametrize(
    "text,expected,as_string",
    DURATION_CASES + [("289y", timedelta(days=289 * 365), "289y")],
)
def test_duration_json(text, expected, as_string):
    d = Duration.from_json(f'"{text}"')
    assert d.to_timedelta() == expected
    assert d.to_json() == f'"{as_string}"'


@pytest.mark.parametrize("text,expected,as_string", DURATION_CASES)
def test_duration_yaml(text, expected, as_string):
    d = Duration.from_yaml(text)
    assert d.to_timedelta() == expected
    assert str(d) == as_string


@pytest.mark.parametrize(
    "text",
    [
        "1",
        "1y1m1d",
        "-1w",
        "1.5d",
        "d",
        "294y",
        "200y10400w",
        "107675d",
        "2584200h",
        "",
    ],
)
def test_parse_bad_duration(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_duration_error_messages():
    with pytest.raises(ValueError, match="empty duration string"):
        parse_duration("")
    with pytest.raises(ValueError, match="duration out of range"):
        parse_duration("294y")
    with pytest.raises(ValueError, match="not a valid duration string"):
        parse_duration("1.5d")


def test_duration_json_rejects_non_string():
    with pytest.raises(ValueError):
        Duration.from_json("5")


@pytest.mark.parametrize("value,text", [(Time(1), "0.001"), (Time(-1), "-0.001")])
def test_time_json(value, text):
    encoded = value.to_json()
    assert encoded == text
    assert Time.from_json(encoded) == value


def test_time_json_whole_seconds():
    assert Time.from_json("12") == Time(12000)
    assert Time.from_json("1.5") == Time(1500)
    assert Time.from_json("1.23456") == Time(1234)


@pytest.mark.parametrize("text", ["1.2.3", "abc", "1.x", ""])
def test_time_json_invalid(text):
    with pytest.raises(ValueError):
        Time.from_json(text)


def test_time_string():
    assert str(Time(1234567)) == "1234.567"
    assert str(Time(1000)) == "1"


def test_interval_holds_bounds():
    interval = Interval(Time(1), Time(2))
    assert interval.start.before(interval.end)