"""Sample values, samples and the value types returned by query evaluation."""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import IntEnum
from functools import cmp_to_key
from typing import Any, ClassVar

from promcommon.metric import Metric
from promcommon.timestamp import EARLIEST, Time

_GO_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class _RawNumber(str):
    """The literal text of a JSON number."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name}")


def _decode(data: str | bytes) -> Any:
    text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
    return json.loads(
        text,
        parse_float=_RawNumber,
        parse_int=_RawNumber,
        parse_constant=_reject_constant,
    )


def _encode_str(s: str) -> str:
    out = json.dumps(s, ensure_ascii=False)
    for char, escape in _GO_ESCAPES.items():
        out = out.replace(char, escape)
    return out


def _is_json_string(node: Any) -> bool:
    return isinstance(node, str) and not isinstance(node, _RawNumber)


def _type_name(node: Any) -> str:
    if node is None:
        return "null"
    if isinstance(node, _RawNumber):
        return "number"
    if isinstance(node, str):
        return "string"
    if isinstance(node, bool):
        return "bool"
    if isinstance(node, list):
        return "array"
    if isinstance(node, dict):
        return "object"
    return type(node).__name__


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


def _parse_float(text: str) -> float:
    if not text or any(c.isspace() or c == "_" for c in text):
        raise ValueError(f"invalid syntax: {json.dumps(text)}")
    unsigned = text.lstrip("+-")
    try:
        if unsigned.lower().startswith("0x"):
            value = float.fromhex(text)
        else:
            value = float(text)
    except (ValueError, OverflowError) as err:
        raise ValueError(f"invalid syntax: {json.dumps(text)}") from err
    if math.isinf(value) and "inf" not in unsigned.lower():
        raise ValueError(f"value out of range: {json.dumps(text)}")
    return value


def _time_from_node(node: Any) -> Time:
    if not isinstance(node, _RawNumber):
        raise ValueError(f"cannot unmarshal {_type_name(node)} into a timestamp")
    return Time.from_json(node)


def _list_node(node: Any, what: str) -> list:
    if not isinstance(node, list):
        raise ValueError(f"cannot unmarshal {_type_name(node)} into {what}")
    return node


class SampleValue(float):
    """The value of a sample at a given time."""

    def equal(self, other: float) -> bool:
        """Return whether the values are equal, treating two NaNs as equal."""
        if float(self) == float(other):
            return True
        return math.isnan(self) and math.isnan(other)

    def to_json(self) -> str:
        """Return the value as a quoted JSON string."""
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, data: str | bytes) -> "SampleValue":
        """Parse a value from a quoted JSON string."""
        return cls._from_node(_decode(data))

    @classmethod
    def _from_node(cls, node: Any) -> "SampleValue":
        if not _is_json_string(node):
            raise ValueError("sample value must be a quoted string")
        return cls(_parse_float(node))

    def __str__(self) -> str:
        return _format_float(float(self))

    def __repr__(self) -> str:
        return f"SampleValue({float(self)!r})"


@dataclass
class SamplePair:
    """A sample value paired with a timestamp."""

    timestamp: Time = field(default_factory=Time)
    value: SampleValue = field(default_factory=SampleValue)

    def __post_init__(self) -> None:
        self.timestamp = Time(self.timestamp)
        self.value = SampleValue(self.value)

    def equal(self, other: "SamplePair") -> bool:
        """Return whether timestamps and values are equal (NaNs match)."""
        return self is other or (
            self.value.equal(other.value) and self.timestamp == other.timestamp
        )

    def to_json(self) -> str:
        """Return the pair as a JSON array of timestamp and quoted value."""
        return f"[{self.timestamp.to_json()},{self.value.to_json()}]"

    @classmethod
    def from_json(cls, data: str | bytes) -> "SamplePair":
        """Parse a pair from a JSON array of timestamp and quoted value."""
        return cls._from_node(_decode(data))

    @classmethod
    def _from_node(cls, node: Any) -> "SamplePair":
        items = _list_node(node, "a sample pair")
        pair = cls()
        if len(items) > 0:
            pair.timestamp = _time_from_node(items[0])
        if len(items) > 1:
            pair.value = SampleValue._from_node(items[1])
        return pair

    def __str__(self) -> str:
        return f"{self.value} @[{self.timestamp}]"


ZERO_SAMPLE_PAIR = SamplePair(timestamp=EARLIEST)


def _metric_to_json(metric: Mapping[str, str]) -> str:
    items = sorted(metric.items(), key=lambda kv: kv[0].encode("utf-8", "surrogatepass"))
    return "{" + ",".join(f"{_encode_str(k)}:{_encode_str(v)}" for k, v in items) + "}"


def _metric_from_node(node: Any) -> Metric:
    if node is None:
        return Metric()
    if not isinstance(node, dict):
        raise ValueError(f"cannot unmarshal {_type_name(node)} into a metric")
    for value in node.values():
        if not _is_json_string(value):
            raise ValueError(f"cannot unmarshal {_type_name(value)} into a label value")
    return Metric({str(k): str(v) for k, v in node.items()})


@dataclass
class Sample:
    """A sample pair associated with a metric."""

    metric: Metric = field(default_factory=Metric)
    value: SampleValue = field(default_factory=SampleValue)
    timestamp: Time = field(default_factory=Time)

    def __post_init__(self) -> None:
        if not isinstance(self.metric, Metric):
            self.metric = Metric(self.metric or {})
        self.value = SampleValue(self.value)
        self.timestamp = Time(self.timestamp)

    def equal(self, other: "Sample") -> bool:
        """Compare metrics, then timestamps, then values (NaNs match)."""
        if self is other:
            return True
        if dict(self.metric) != dict(other.metric):
            return False
        if self.timestamp != other.timestamp:
            return False
        return self.value.equal(other.value)

    def to_json(self) -> str:
        """Return the sample as a JSON object with metric and value."""
        pair = SamplePair(timestamp=self.timestamp, value=self.value)
        return f'{{"metric":{_metric_to_json(self.metric)},"value":{pair.to_json()}}}'

    @classmethod
    def from_json(cls, data: str | bytes) -> "Sample":
        """Parse a sample from a JSON object with metric and value."""
        return cls._from_node(_decode(data))

    @classmethod
    def _from_node(cls, node: Any) -> "Sample":
        if not isinstance(node, dict):
            raise ValueError(f"cannot unmarshal {_type_name(node)} into a sample")
        sample = cls()
        if "metric" in node:
            sample.metric = _metric_from_node(node["metric"])
        if node.get("value") is not None:
            pair = SamplePair._from_node(node["value"])
            sample.timestamp = pair.timestamp
            sample.value = pair.value
        return sample

    def __str__(self) -> str:
        pair = SamplePair(timestamp=self.timestamp, value=self.value)
        return f"{self.metric} => {pair}"


ZERO_SAMPLE = Sample(timestamp=EARLIEST)


def _compare_samples(a: Sample, b: Sample) -> int:
    if a.metric.before(b.metric):
        return -1
    if b.metric.before(a.metric):
        return 1
    if a.timestamp < b.timestamp:
        return -1
    if b.timestamp < a.timestamp:
        return 1
    return 0


def _samples_equal(a: list, b: list) -> bool:
    return len(a) == len(b) and all(x.equal(y) for x, y in zip(a, b))


class Samples(list):
    """A list of samples ordered by metric, then timestamp."""

    def sort(self) -> None:  # type: ignore[override]
        """Sort in place by metric, then timestamp."""
        super().sort(key=cmp_to_key(_compare_samples))

    def equal(self, other: Iterable[Sample]) -> bool:
        """Return whether both lists hold equal samples in the same order."""
        return _samples_equal(self, list(other))


@dataclass
class SampleStream:
    """A stream of values belonging to one metric."""

    metric: Metric = field(default_factory=Metric)
    values: list[SamplePair] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not isinstance(self.metric, Metric):
            self.metric = Metric(self.metric or {})

    def __str__(self) -> str:
        return f"{self.metric} =>\n" + "\n".join(str(v) for v in self.values)


class ValueType(IntEnum):
    """The type of a query evaluation result."""

    NONE = 0
    SCALAR = 1
    VECTOR = 2
    MATRIX = 3
    STRING = 4

    def to_json(self) -> str:
        """Return the type name as a JSON string."""
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, data: str | bytes) -> "ValueType":
        """Parse a type from its JSON string name."""
        node = _decode(data)
        if not _is_json_string(node):
            raise ValueError(f"cannot unmarshal {_type_name(node)} into a value type")
        for member in cls:
            if str(member) == node:
                return member
        raise ValueError(f"unknown value type {json.dumps(node, ensure_ascii=False)}")

    def __str__(self) -> str:
        return _VALUE_TYPE_NAMES[self]


_VALUE_TYPE_NAMES = {
    ValueType.NONE: "<ValNone>",
    ValueType.SCALAR: "scalar",
    ValueType.VECTOR: "vector",
    ValueType.MATRIX: "matrix",
    ValueType.STRING: "string",
}


@dataclass
class Scalar:
    """A scalar value evaluated at a timestamp."""

    value_type: ClassVar[ValueType] = ValueType.SCALAR

    value: SampleValue = field(default_factory=SampleValue)
    timestamp: Time = field(default_factory=Time)

    def __post_init__(self) -> None:
        self.value = SampleValue(self.value)
        self.timestamp = Time(self.timestamp)

    def to_json(self) -> str:
        """Return the scalar as a JSON array of timestamp and quoted value."""
        return f"[{self.timestamp.to_json()},{self.value.to_json()}]"

    @classmethod
    def from_json(cls, data: str | bytes) -> "Scalar":
        """Parse a scalar from a JSON array of timestamp and quoted value."""
        items = _list_node(_decode(data), "a scalar")
        scalar = cls()
        if len(items) > 0:
            scalar.timestamp = _time_from_node(items[0])
        text = ""
        if len(items) > 1:
            if not _is_json_string(items[1]):
                raise ValueError(f"cannot unmarshal {_type_name(items[1])} into a string")
            text = items[1]
        try:
            scalar.value = SampleValue(_parse_float(text))
        except ValueError as err:
            raise ValueError(f"error parsing sample value: {err}") from err
        return scalar

    def __str__(self) -> str:
        return f"scalar: {self.value} @[{self.timestamp}]"


@dataclass
class String:
    """A string value evaluated at a timestamp."""

    value_type: ClassVar[ValueType] = ValueType.STRING

    value: str = ""
    timestamp: Time = field(default_factory=Time)

    def __post_init__(self) -> None:
        self.timestamp = Time(self.timestamp)

    def to_json(self) -> str:
        """Return the string as a JSON array of timestamp and value."""
        return f"[{self.timestamp.to_json()},{_encode_str(self.value)}]"

    @classmethod
    def from_json(cls, data: str | bytes) -> "String":
        """Parse a string from a JSON array of timestamp and value."""
        items = _list_node(_decode(data), "a string value")
        result = cls()
        if len(items) > 0:
            result.timestamp = _time_from_node(items[0])
        if len(items) > 1:
            if not _is_json_string(items[1]):
                raise ValueError(f"cannot unmarshal {_type_name(items[1])} into a string")
            result.value = str(items[1])
        return result

    def __str__(self) -> str:
        return self.value


class Vector(list):
    """Samples that all share the same timestamp."""

    value_type: ClassVar[ValueType] = ValueType.VECTOR

    def sort(self) -> None:  # type: ignore[override]
        """Sort in place by metric, then timestamp."""
        super().sort(key=cmp_to_key(_compare_samples))

    def equal(self, other: Iterable[Sample]) -> bool:
        """Return whether both vectors hold equal samples in the same order."""
        return _samples_equal(self, list(other))

    def to_json(self) -> str:
        """Return the vector as a JSON array of samples."""
        return "[" + ",".join(sample.to_json() for sample in self) + "]"

    @classmethod
    def from_json(cls, data: str | bytes) -> "Vector":
        """Parse a vector from a JSON array of samples."""
        node = _decode(data)
        if node is None:
            return cls()
        return cls(Sample._from_node(item) for item in _list_node(node, "a vector"))

    def __str__(self) -> str:
        return "\n".join(str(sample) for sample in self)


def _compare_streams(a: SampleStream, b: SampleStream) -> int:
    if a.metric.before(b.metric):
        return -1
    if b.metric.before(a.metric):
        return 1
    return 0


class Matrix(list):
    """A list of time series."""

    value_type: ClassVar[ValueType] = ValueType.MATRIX

    def sort(self) -> None:  # type: ignore[override]
        """Sort in place by metric."""
        super().sort(key=cmp_to_key(_compare_streams))

    def __str__(self) -> str:
        ordered = Matrix(self)
        ordered.sort()
        return "\n".join(str(stream) for stream in ordered)