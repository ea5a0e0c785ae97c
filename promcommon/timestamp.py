"""Millisecond timestamps and the y/w/d/h/m/s/ms duration format."""

from __future__ import annotations

import json
import math
import re
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import yaml

MINIMUM_TICK_NS = 1_000_000
SECOND = 1000
NANOS_PER_TICK = MINIMUM_TICK_NS
DOT_PRECISION = 3

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_INT_RE = re.compile(r"[+-]?[0-9]+")
_DURATION_RE = re.compile(
    r"(?:(?P<y>[0-9]+)y)?(?:(?P<w>[0-9]+)w)?(?:(?P<d>[0-9]+)d)?"
    r"(?:(?P<h>[0-9]+)h)?(?:(?P<m>[0-9]+)m)?(?:(?P<s>[0-9]+)s)?"
    r"(?:(?P<ms>[0-9]+)ms)?"
)
_YAML_NULL_TAG = "tag:yaml.org,2002:null"

_MS_PER_UNIT = {
    "y": 1000 * 60 * 60 * 24 * 365,
    "w": 1000 * 60 * 60 * 24 * 7,
    "d": 1000 * 60 * 60 * 24,
    "h": 1000 * 60 * 60,
    "m": 1000 * 60,
    "s": 1000,
    "ms": 1,
}
# Years and weeks are only written when they divide the duration exactly.
_EXACT_UNITS = frozenset({"y", "w"})


def _tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def _tmod(a: int, b: int) -> int:
    return a - _tdiv(a, b) * b


def _format_float(value: float) -> str:
    """Shortest decimal form of a float, never in exponent notation."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _parse_int(text: str, bits: int) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid syntax: {json.dumps(text)}")
    value = int(text)
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        raise ValueError(f"value out of range: {json.dumps(text)}")
    return value


class Time(int):
    """Milliseconds since the Unix epoch, excluding leap seconds."""

    def __new__(cls, ms: int = 0) -> "Time":
        value = super().__new__(cls, ms)
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise ValueError(f"time {int(ms)} out of range")
        return value

    @classmethod
    def now(cls) -> "Time":
        """Return the current time."""
        return cls.from_unix_nano(time.time_ns())

    @classmethod
    def from_unix(cls, seconds: int) -> "Time":
        """Return the time for a Unix time in seconds."""
        return cls(seconds * SECOND)

    @classmethod
    def from_unix_nano(cls, nanos: int) -> "Time":
        """Return the time for a Unix time in nanoseconds."""
        return cls(_tdiv(nanos, NANOS_PER_TICK))

    def before(self, other: int) -> bool:
        """Return whether this time is before the other."""
        return int(self) < int(other)

    def after(self, other: int) -> bool:
        """Return whether this time is after the other."""
        return int(self) > int(other)

    def add(self, delta: "timedelta | Duration | int") -> "Time":
        """Return this time plus a timedelta or a Duration in nanoseconds."""
        if isinstance(delta, timedelta):
            ms = _tdiv(delta // timedelta(microseconds=1), 1000)
        else:
            ms = _tdiv(int(delta), NANOS_PER_TICK)
        return Time(int(self) + ms)

    def sub(self, other: int) -> "Duration":
        """Return the duration from the other time to this one."""
        return Duration((int(self) - int(other)) * MINIMUM_TICK_NS)

    def to_datetime(self) -> datetime:
        """Return the time as an aware UTC datetime."""
        return _EPOCH + timedelta(milliseconds=int(self))

    def unix(self) -> int:
        """Return the time in whole seconds since the epoch."""
        return _tdiv(int(self), SECOND)

    def unix_nano(self) -> int:
        """Return the time in nanoseconds since the epoch."""
        return int(self) * NANOS_PER_TICK

    def to_json(self) -> str:
        """Return the JSON number for the time in seconds."""
        return str(self)

    @classmethod
    def from_json(cls, data: str | bytes) -> "Time":
        """Parse a JSON number of seconds with up to millisecond precision."""
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        parts = text.split(".")
        if len(parts) == 1:
            return cls(_parse_int(parts[0], 64) * SECOND)
        if len(parts) == 2:
            whole, frac = parts
            seconds = _parse_int(whole, 64) * SECOND
            prec = DOT_PRECISION - len(frac)
            if prec < 0:
                frac = frac[:DOT_PRECISION]
            elif prec > 0:
                frac += "0" * prec
            total = seconds + _parse_int(frac, 32)
            # A leading "-0" loses its sign in the integer part.
            if whole.startswith("-") and total > 0:
                total = -total
            return cls(total)
        raise ValueError(f"invalid time {json.dumps(text)}")

    def __str__(self) -> str:
        return _format_float(float(int(self)) / float(SECOND))

    def __repr__(self) -> str:
        return f"Time({int(self)})"


EARLIEST = Time(_INT64_MIN)
LATEST = Time(_INT64_MAX)


@dataclass(frozen=True)
class Interval:
    """An interval between two timestamps."""

    start: Time
    end: Time


class Duration(int):
    """A span of time in nanoseconds, written like 1d2h or 30s."""

    def to_timedelta(self) -> timedelta:
        """Return the duration as a timedelta."""
        return timedelta(microseconds=_tdiv(int(self), 1000))

    def to_json(self) -> str:
        """Return the duration as a JSON string."""
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, data: str | bytes) -> "Duration":
        """Parse a duration from a JSON string."""
        decoded = json.loads(data)
        if not isinstance(decoded, str):
            raise ValueError(
                f"cannot unmarshal {type(decoded).__name__} into a duration"
            )
        return cls(parse_duration(decoded))

    @classmethod
    def from_yaml(cls, text: str | bytes) -> "Duration":
        """Parse a duration from a YAML scalar."""
        node = yaml.compose(text, Loader=yaml.SafeLoader)
        if node is None or node.tag == _YAML_NULL_TAG:
            value = ""
        elif isinstance(node, yaml.ScalarNode):
            value = node.value
        else:
            raise ValueError("cannot unmarshal a YAML collection into a duration")
        return cls(parse_duration(value))

    def __str__(self) -> str:
        ms = _tdiv(int(self), MINIMUM_TICK_NS)
        if ms == 0:
            return "0s"
        out = []
        for unit, mult in _MS_PER_UNIT.items():
            if unit in _EXACT_UNITS and _tmod(ms, mult) != 0:
                continue
            count = _tdiv(ms, mult)
            if count > 0:
                out.append(f"{count}{unit}")
                ms -= count * mult
        return "".join(out)

    def __repr__(self) -> str:
        return f"Duration({str(self)!r})"


def parse_duration(text: str) -> Duration:
    """Parse a duration, taking a year as 365d, a week as 7d and a day as 24h."""
    if text == "0":
        return Duration(0)
    if text == "":
        raise ValueError("empty duration string")
    match = _DURATION_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"not a valid duration string: {json.dumps(text)}")
    total_ms = sum(
        int(amount) * _MS_PER_UNIT[unit]
        for unit, amount in match.groupdict().items()
        if amount
    )
    nanos = total_ms * MINIMUM_TICK_NS
    if nanos > _INT64_MAX:
        raise ValueError("duration out of range")
    return Duration(nanos)