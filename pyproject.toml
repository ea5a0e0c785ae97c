[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "promcommon"
version = "0.1.0"
description = "Monitoring data model (labels, metrics, fingerprints, alerts, silences, samples, durations) with a levelled logger, a WSGI router and a static file server"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["monitoring", "metrics", "labels", "fingerprint", "alerts", "time-series", "wsgi"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: System :: Logging",
    "Topic :: Internet :: WWW/HTTP :: WSGI",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["promcommon"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
