"""Command-line flags that configure a logger."""

from __future__ import annotations

import argparse
from typing import Any

from promcommon.promlog import AllowedFormat, AllowedLevel, Config

LEVEL_FLAG_NAME = "log.level"
LEVEL_FLAG_HELP = (
    "Only log messages with the given severity or above. "
    "One of: [debug, info, warn, error]"
)
FORMAT_FLAG_NAME = "log.format"
FORMAT_FLAG_HELP = "Output format of log messages. One of: [logfmt, json]"


class _SetValue(argparse.Action):
    def __init__(self, option_strings: list[str], dest: str, target: Any, **kwargs: Any):
        super().__init__(option_strings, dest, **kwargs)
        self._target = target

    def __call__(self, parser, namespace, values, option_string=None):  # type: ignore[override]
        try:
            self._target.set(values)
        except ValueError as err:
            raise argparse.ArgumentError(self, str(err)) from err
        setattr(namespace, self.dest, values)


def add_flags(parser: argparse.ArgumentParser, config: Config) -> None:
    """Add the log level and log format flags, storing values in config."""
    config.level = AllowedLevel()
    config.level.set("info")
    parser.add_argument(
        f"--{LEVEL_FLAG_NAME}",
        dest="log_level",
        action=_SetValue,
        target=config.level,
        default="info",
        help=LEVEL_FLAG_HELP,
    )

    config.format = AllowedFormat()
    config.format.set("logfmt")
    parser.add_argument(
        f"--{FORMAT_FLAG_NAME}",
        dest="log_format",
        action=_SetValue,
        target=config.format,
        default="logfmt",
        help=FORMAT_FLAG_HELP,
    )