"""Build information and its textual forms."""

from __future__ import annotations

import platform
import sys

# Build information, filled in when the program is packaged.
VERSION = ""
REVISION = ""
BRANCH = ""
BUILD_USER = ""
BUILD_DATE = ""
PYTHON_VERSION = platform.python_version()

_VERSION_INFO_TEMPLATE = """
{program}, version {version} (branch: {branch}, revision: {revision})
  build user:       {build_user}
  build date:       {build_date}
  python version:   {python_version}
  platform:         {platform}
"""


def _platform() -> str:
    return f"{sys.platform}/{platform.machine().lower()}"


def print_version(program: str) -> str:
    """Return a multi-line description of the program's build."""
    text = _VERSION_INFO_TEMPLATE.format(
        program=program,
        version=VERSION,
        revision=REVISION,
        branch=BRANCH,
        build_user=BUILD_USER,
        build_date=BUILD_DATE,
        python_version=PYTHON_VERSION,
        platform=_platform(),
    )
    return text.strip()


def info() -> str:
    """Return version, branch and revision information."""
    return f"(version={VERSION}, branch={BRANCH}, revision={REVISION})"


def build_context() -> str:
    """Return runtime version, build user and build date information."""
    return f"(python={PYTHON_VERSION}, user={BUILD_USER}, date={BUILD_DATE})"