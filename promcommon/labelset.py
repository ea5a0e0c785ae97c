"""Label sets: collections of label name/value pairs."""

from __future__ import annotations

import json
from collections.abc import Mapping

from promcommon.fingerprint import (
    Fingerprint,
    label_set_to_fast_fingerprint,
    label_set_to_fingerprint,
)
from promcommon.labels import is_valid_label_name, is_valid_label_value


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


class LabelSet(dict):
    """A mapping of label names to label values."""

    def validate(self) -> None:
        """Raise ValueError if any name or value in the set is invalid."""
        for name, value in self.items():
            if not is_valid_label_name(name):
                raise ValueError(f"invalid name {_quote(name)}")
            if not is_valid_label_value(value):
                raise ValueError(f"invalid value {_quote(value)}")

    def before(self, other: Mapping[str, str]) -> bool:
        """Return whether this set sorts before the other.

        Fewer labels sort first. With equal counts, the union of names is
        walked in sorted order and the first differing pair decides: a name
        missing here sorts first, otherwise the values are compared.
        Equal sets return False.
        """
        if len(self) != len(other):
            return len(self) < len(other)
        for name in sorted([*self, *other]):
            if name not in self:
                return True
            if name not in other:
                return False
            mine, theirs = self[name], other[name]
            if mine != theirs:
                return mine < theirs
        return False

    def clone(self) -> "LabelSet":
        """Return a copy of the label set."""
        return type(self)(self)

    def merge(self, other: Mapping[str, str]) -> "LabelSet":
        """Return a new set holding both sets; values of the other win."""
        return type(self)({**self, **other})

    def fingerprint(self) -> Fingerprint:
        """Return the fingerprint of the label set."""
        return label_set_to_fingerprint(self)

    def fast_fingerprint(self) -> Fingerprint:
        """Return the faster, more collision-prone fingerprint of the set."""
        return label_set_to_fast_fingerprint(self)

    @classmethod
    def from_json(cls, data: str | bytes) -> "LabelSet":
        """Decode a JSON object into a label set, validating the names."""
        decoded = json.loads(data)
        if decoded is None:
            return cls()
        if not isinstance(decoded, dict):
            raise ValueError(
                f"cannot unmarshal {type(decoded).__name__} into a label set"
            )
        for name, value in decoded.items():
            if not isinstance(value, str):
                raise ValueError(
                    f"cannot unmarshal {type(value).__name__} into a label value"
                )
            if not is_valid_label_name(name):
                raise ValueError(f"{_quote(name)} is not a valid label name")
        return cls(decoded)

    def __str__(self) -> str:
        pairs = sorted(f"{name}={_quote(value)}" for name, value in self.items())
        return "{" + ", ".join(pairs) + "}"