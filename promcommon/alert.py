"""Alerts and lists of alerts."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from promcommon.fingerprint import Fingerprint
from promcommon.labels import ALERT_NAME_LABEL
from promcommon.labelset import LabelSet


class AlertStatus(str, Enum):
    """Whether an alert is firing or resolved."""

    FIRING = "firing"
    RESOLVED = "resolved"

    def __str__(self) -> str:
        return self.value


def _now_like(ts: datetime) -> datetime:
    return datetime.now(tz=ts.tzinfo)


def _before(a: datetime | None, b: datetime | None) -> bool:
    # A missing time is the earliest possible instant.
    if a is None:
        return b is not None
    if b is None:
        return False
    return a < b


@dataclass
class Alert:
    """An alert identified by its labels; missing times are None."""

    labels: Mapping[str, str] = field(default_factory=LabelSet)
    annotations: Mapping[str, str] = field(default_factory=LabelSet)
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    generator_url: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.labels, LabelSet):
            self.labels = LabelSet(self.labels or {})
        if not isinstance(self.annotations, LabelSet):
            self.annotations = LabelSet(self.annotations or {})

    def name(self) -> str:
        """Return the value of the alertname label."""
        return self.labels.get(ALERT_NAME_LABEL, "")

    def fingerprint(self) -> Fingerprint:
        """Return the fingerprint of the alert's labels."""
        return self.labels.fingerprint()

    def resolved(self) -> bool:
        """Return whether the alert ended in the past."""
        if self.ends_at is None:
            return False
        return self.resolved_at(_now_like(self.ends_at))

    def resolved_at(self, ts: datetime) -> bool:
        """Return whether the alert ended at or before the given time."""
        if self.ends_at is None:
            return False
        return not self.ends_at > ts

    def status(self) -> AlertStatus:
        """Return the status of the alert."""
        return AlertStatus.RESOLVED if self.resolved() else AlertStatus.FIRING

    def validate(self) -> None:
        """Raise ValueError if the alert data is inconsistent."""
        if self.starts_at is None:
            raise ValueError("start time missing")
        if self.ends_at is not None and self.ends_at < self.starts_at:
            raise ValueError("start time must be before end time")
        try:
            self.labels.validate()
        except ValueError as err:
            raise ValueError(f"invalid label set: {err}") from err
        if not self.labels:
            raise ValueError("at least one label pair required")
        try:
            self.annotations.validate()
        except ValueError as err:
            raise ValueError(f"invalid annotations: {err}") from err

    def __str__(self) -> str:
        state = "resolved" if self.resolved() else "active"
        return f"{self.name()}[{str(self.fingerprint())[:7]}][{state}]"


def _alert_less(a: Alert, b: Alert) -> bool:
    if _before(a.starts_at, b.starts_at):
        return True
    if _before(a.ends_at, b.ends_at):
        return True
    return a.fingerprint() < b.fingerprint()


class Alerts(list):
    """A list of alerts that can be sorted in chronological order."""

    def sort(self) -> None:  # type: ignore[override]
        """Sort in place by start time, then end time, then fingerprint.

        Insertion order is kept stable, matching a plain insertion sort.
        """
        ordered: list[Alert] = []
        for alert in self:
            pos = len(ordered)
            while pos > 0 and _alert_less(alert, ordered[pos - 1]):
                pos -= 1
            ordered.insert(pos, alert)
        self[:] = ordered

    def has_firing(self) -> bool:
        """Return whether any alert is not resolved."""
        return any(not alert.resolved() for alert in self)

    def status(self) -> AlertStatus:
        """Return FIRING if at least one alert is firing."""
        return AlertStatus.FIRING if self.has_firing() else AlertStatus.RESOLVED