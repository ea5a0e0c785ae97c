"""FNV-1a based fingerprints and signatures of label sets."""

from __future__ import annotations

import re
from collections.abc import Collection, Iterable, Mapping

OFFSET64 = 14695981039346656037
PRIME64 = 1099511628211

# A byte that cannot occur in valid UTF-8; separates names and values when hashing.
SEPARATOR_BYTE = 255

_MASK64 = (1 << 64) - 1
_HEX_RE = re.compile(r"[0-9a-fA-F]+")


def _as_bytes(s: str | bytes) -> bytes:
    if isinstance(s, (bytes, bytearray)):
        return bytes(s)
    try:
        return s.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        return s.encode("utf-8", "surrogatepass")


class Fingerprint(int):
    """A 64-bit hash identifying a label set."""

    def __new__(cls, value: int = 0) -> "Fingerprint":
        fp = super().__new__(cls, value)
        if not 0 <= fp <= _MASK64:
            raise ValueError(f"fingerprint {int(value)} out of 64-bit range")
        return fp

    def __str__(self) -> str:
        return format(int(self), "016x")

    def __repr__(self) -> str:
        return f"Fingerprint(0x{int(self):016x})"


class FingerprintSet(set):
    """A set of fingerprints."""

    def intersection(self, other: Iterable[int]) -> "FingerprintSet":  # type: ignore[override]
        """Return the fingerprints contained in both sets."""
        return FingerprintSet(set.intersection(self, other))


def parse_fingerprint(s: str) -> Fingerprint:
    """Parse a hexadecimal string into a fingerprint."""
    if not _HEX_RE.fullmatch(s):
        raise ValueError(f"invalid fingerprint syntax: {s!r}")
    value = int(s, 16)
    if value > _MASK64:
        raise ValueError(f"fingerprint value out of range: {s!r}")
    return Fingerprint(value)


def fingerprint_from_string(s: str) -> Fingerprint:
    """Transform a hexadecimal string representation into a fingerprint."""
    return parse_fingerprint(s)


def hash_new() -> int:
    """Return the initial FNV-1a 64-bit hash value."""
    return OFFSET64


def hash_add(h: int, s: str | bytes) -> int:
    """Add the bytes of a string to an FNV-1a hash value."""
    for b in _as_bytes(s):
        h = ((h ^ b) * PRIME64) & _MASK64
    return h


def hash_add_byte(h: int, b: int) -> int:
    """Add a single byte to an FNV-1a hash value."""
    return ((h ^ (b & 0xFF)) * PRIME64) & _MASK64


EMPTY_LABEL_SIGNATURE = hash_new()


def _sum_pairs(pairs: Iterable[tuple[str, str]]) -> int:
    h = hash_new()
    for name, value in pairs:
        h = hash_add(h, name)
        h = hash_add_byte(h, SEPARATOR_BYTE)
        h = hash_add(h, value)
        h = hash_add_byte(h, SEPARATOR_BYTE)
    return h


def _sorted_names(names: Iterable[str]) -> list[str]:
    return sorted(names, key=_as_bytes)


def labels_to_signature(labels: Mapping[str, str] | None) -> int:
    """Return a quasi-unique signature for a mapping of labels."""
    if not labels:
        return EMPTY_LABEL_SIGNATURE
    return _sum_pairs((name, labels[name]) for name in _sorted_names(labels))


def label_set_to_fingerprint(labels: Mapping[str, str] | None) -> Fingerprint:
    """Return the fingerprint of a label set."""
    return Fingerprint(labels_to_signature(labels))


def label_set_to_fast_fingerprint(labels: Mapping[str, str] | None) -> Fingerprint:
    """Return an order-independent, collision-prone fingerprint of a label set."""
    if not labels:
        return Fingerprint(EMPTY_LABEL_SIGNATURE)
    result = 0
    for name, value in labels.items():
        h = hash_add(hash_new(), name)
        h = hash_add_byte(h, SEPARATOR_BYTE)
        h = hash_add(h, value)
        result ^= h
    return Fingerprint(result)


def signature_for_labels(metric: Mapping[str, str], *args: str) -> int:
    """Return the signature of only the named labels of a metric.

    Names missing from the metric contribute an empty value.
    """
    if not args:
        return EMPTY_LABEL_SIGNATURE
    return _sum_pairs((name, metric.get(name, "")) for name in _sorted_names(args))


def signature_without_labels(
    metric: Mapping[str, str], labels: Collection[str] | None
) -> int:
    """Return the signature of a metric, excluding the given label names."""
    if not metric:
        return EMPTY_LABEL_SIGNATURE
    excluded = labels if labels is not None else ()
    names = _sorted_names(name for name in metric if name not in excluded)
    if not names:
        return EMPTY_LABEL_SIGNATURE
    return _sum_pairs((name, metric[name]) for name in names)