"""Metrics: label sets that identify a single series."""

from __future__ import annotations

import json
import re

from promcommon.labels import METRIC_NAME_LABEL
from promcommon.labelset import LabelSet

METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*\Z")

_LEADING_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_:"
)
_TRAILING_CHARS = _LEADING_CHARS | frozenset("0123456789")


class Metric(LabelSet):
    """A label set referring to exactly one stream of samples."""

    def clone(self) -> "Metric":
        """Return a copy of the metric."""
        return Metric(self)

    def __str__(self) -> str:
        name = self.get(METRIC_NAME_LABEL)
        labels = sorted(
            f"{label}={json.dumps(value, ensure_ascii=False)}"
            for label, value in self.items()
            if label != METRIC_NAME_LABEL
        )
        if not labels:
            return name if name is not None else "{}"
        return f"{name or ''}{{{', '.join(labels)}}}"


def is_valid_metric_name(name: str) -> bool:
    """Return whether the name matches METRIC_NAME_RE."""
    if not name:
        return False
    return name[0] in _LEADING_CHARS and all(c in _TRAILING_CHARS for c in name[1:])