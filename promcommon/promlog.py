"""Leveled key/value loggers that write logfmt or JSON lines."""

from __future__ import annotations

import inspect
import json
import os
import sys
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Protocol, TextIO

import yaml

_YAML_NULL_TAG = "tag:yaml.org,2002:null"
_MISSING = "(MISSING)"
_THIS_FILE = os.path.normcase(os.path.abspath(__file__))


class Level(str, Enum):
    """Severity of a log entry, from least to most severe."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        """Position of the level in order of severity."""
        return list(type(self)).index(self)

    def __str__(self) -> str:
        return self.value


class _Sink(Protocol):
    def log(self, *keyvals: Any) -> Any: ...


def _timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _caller() -> str:
    frame = inspect.currentframe()
    while frame is not None:
        filename = os.path.normcase(os.path.abspath(frame.f_code.co_filename))
        if filename != _THIS_FILE:
            return f"{os.path.basename(frame.f_code.co_filename)}:{frame.f_lineno}"
        frame = frame.f_back
    return "???"


def _pairs(keyvals: tuple[Any, ...]) -> list[tuple[Any, Any]]:
    items = list(keyvals)
    if len(items) % 2:
        items.append(_MISSING)
    return list(zip(items[::2], items[1::2]))


def _logfmt_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    if any(c <= " " or c in '="' or c == "\ufffd" for c in text):
        return json.dumps(text, ensure_ascii=False)
    return text


def _json_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    return str(value)


class _LineWriter:
    """Formats key/value pairs as one line and writes it to a stream."""

    def __init__(self, stream: TextIO, use_json: bool) -> None:
        self._stream = stream
        self._json = use_json
        self._lock = threading.Lock()

    def _format(self, keyvals: tuple[Any, ...]) -> str:
        pairs = _pairs(keyvals)
        if self._json:
            record = {str(k): _json_value(v) for k, v in pairs}
            return json.dumps(record, sort_keys=True, ensure_ascii=False)
        return " ".join(f"{k}={_logfmt_value(v)}" for k, v in pairs)

    def log(self, *keyvals: Any) -> None:
        line = self._format(keyvals)
        with self._lock:
            self._stream.write(line + "\n")
            flush = getattr(self._stream, "flush", None)
            if flush is not None:
                flush()


@dataclass
class AllowedLevel:
    """A settable minimum level that a log entry must have."""

    value: str = ""
    level: Level | None = None

    def set(self, value: str) -> None:
        """Set the allowed level from its name."""
        try:
            level = Level(value)
        except ValueError:
            raise ValueError(
                f"unrecognized log level {json.dumps(value, ensure_ascii=False)}"
            ) from None
        self.level = level
        self.value = value

    @classmethod
    def from_yaml(cls, text: str | bytes) -> "AllowedLevel":
        """Decode a YAML scalar; an empty document gives an unset level."""
        node = yaml.compose(text, Loader=yaml.SafeLoader)
        if node is None or node.tag == _YAML_NULL_TAG:
            return cls()
        if not isinstance(node, yaml.ScalarNode):
            raise ValueError("cannot unmarshal a YAML collection into a log level")
        allowed = cls()
        if node.value:
            allowed.set(node.value)
        return allowed

    def __str__(self) -> str:
        return self.value


@dataclass
class AllowedFormat:
    """A settable output format: logfmt or json."""

    value: str = ""

    def set(self, value: str) -> None:
        """Set the output format from its name."""
        if value not in ("logfmt", "json"):
            raise ValueError(
                f"unrecognized log format {json.dumps(value, ensure_ascii=False)}"
            )
        self.value = value

    def __str__(self) -> str:
        return self.value


@dataclass
class Config:
    """Settings for a logger."""

    level: AllowedLevel | None = None
    format: AllowedFormat | None = None


class Logger:
    """Adds timestamp and caller to entries, dropping those below a level."""

    def __init__(self, base: _Sink, allowed: Level | None = None) -> None:
        self._base = base
        self._allowed = allowed

    def _permits(self, args: tuple[Any, ...]) -> bool:
        if self._allowed is None:
            return True
        for value in args[1::2]:
            if isinstance(value, Level):
                return value.rank >= self._allowed.rank
        return True

    def log(self, *args: Any) -> None:
        """Write an entry made of alternating keys and values."""
        if not self._permits(args):
            return
        self._base.log("ts", _timestamp(), "caller", _caller(), *args)

    def debug(self, *args: Any) -> None:
        """Write an entry at debug level."""
        self.log("level", Level.DEBUG, *args)

    def info(self, *args: Any) -> None:
        """Write an entry at info level."""
        self.log("level", Level.INFO, *args)

    def warn(self, *args: Any) -> None:
        """Write an entry at warn level."""
        self.log("level", Level.WARN, *args)

    def error(self, *args: Any) -> None:
        """Write an entry at error level."""
        self.log("level", Level.ERROR, *args)


class DynamicLogger:
    """A logger whose level can be changed while it is in use."""

    def __init__(self, base: _Sink) -> None:
        self.base = base
        self._leveled: _Sink = base
        self._current: AllowedLevel | None = None
        self._lock = threading.Lock()

    def log(self, *args: Any) -> None:
        """Write an entry made of alternating keys and values."""
        with self._lock:
            self._leveled.log(*args)

    def set_level(self, level: AllowedLevel | None) -> None:
        """Change the allowed level; None removes filtering."""
        with self._lock:
            if level is None:
                self._leveled = Logger(self.base)
                self._current = None
                return
            if level.level is None:
                raise ValueError("log level is not set")
            if self._current is not None and self._current.value != level.value:
                self.base.log(
                    "msg", "Log level changed", "prev", self._current, "current", level
                )
            self._current = level
            self._leveled = Logger(self.base, level.level)


def _writer(config: Config, stream: TextIO | None) -> _LineWriter:
    out = stream if stream is not None else sys.stderr
    use_json = config.format is not None and config.format.value == "json"
    return _LineWriter(out, use_json)


def new(config: Config, stream: TextIO | None = None) -> Logger:
    """Return a leveled logger that timestamps each line; stderr by default."""
    allowed = config.level.level if config.level is not None else None
    return Logger(_writer(config, stream), allowed)


def new_dynamic(config: Config, stream: TextIO | None = None) -> DynamicLogger:
    """Return a logger whose level can be changed later; stderr by default."""
    logger = DynamicLogger(_writer(config, stream))
    if config.level is not None:
        logger.set_level(config.level)
    return logger