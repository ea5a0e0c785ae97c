"""Label names, label values and label pairs."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from dataclasses import dataclass

import yaml

ALERT_NAME_LABEL = "alertname"
EXPORTED_LABEL_PREFIX = "exported_"
METRIC_NAME_LABEL = "__name__"
SCHEME_LABEL = "__scheme__"
ADDRESS_LABEL = "__address__"
METRICS_PATH_LABEL = "__metrics_path__"
SCRAPE_INTERVAL_LABEL = "__scrape_interval__"
SCRAPE_TIMEOUT_LABEL = "__scrape_timeout__"
RESERVED_LABEL_PREFIX = "__"
META_LABEL_PREFIX = "__meta_"
TMP_LABEL_PREFIX = "__tmp_"
PARAM_LABEL_PREFIX = "__param_"
JOB_LABEL = "job"
INSTANCE_LABEL = "instance"
BUCKET_LABEL = "le"
QUANTILE_LABEL = "quantile"

LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*\Z")

_LEADING_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
_TRAILING_CHARS = _LEADING_CHARS | frozenset("0123456789")

_YAML_NULL_TAG = "tag:yaml.org,2002:null"


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


def is_valid_label_name(name: str) -> bool:
    """Return whether the name matches LABEL_NAME_RE."""
    if not name:
        return False
    return name[0] in _LEADING_CHARS and all(c in _TRAILING_CHARS for c in name[1:])


def is_valid_label_value(value: str | bytes) -> bool:
    """Return whether the value is valid UTF-8."""
    try:
        if isinstance(value, (bytes, bytearray)):
            bytes(value).decode("utf-8")
        else:
            value.encode("utf-8")
    except UnicodeError:
        return False
    return True


def _checked_name(name: str) -> str:
    if not is_valid_label_name(name):
        raise ValueError(f"{_quote(name)} is not a valid label name")
    return name


def label_name_from_json(data: str | bytes) -> str:
    """Decode a JSON string into a label name, validating it."""
    name = json.loads(data)
    if not isinstance(name, str):
        raise ValueError(f"cannot unmarshal {type(name).__name__} into a label name")
    return _checked_name(name)


def label_name_from_yaml(text: str | bytes) -> str:
    """Decode a YAML scalar into a label name, validating it."""
    node = yaml.compose(text, Loader=yaml.SafeLoader)
    if node is None or node.tag == _YAML_NULL_TAG:
        name = ""
    elif isinstance(node, yaml.ScalarNode):
        name = node.value
    else:
        raise ValueError("cannot unmarshal a YAML collection into a label name")
    return _checked_name(name)


def label_names_string(names: Iterable[str]) -> str:
    """Join label names with a comma and a space."""
    return ", ".join(names)


@dataclass(frozen=True, order=True)
class LabelPair:
    """A label name paired with a value; ordered by name, then value."""

    name: str
    value: str