# promcommon

Building blocks for monitoring software:

- the label and metric data model, with stable FNV-1a fingerprints and
  signatures (`promcommon.labels`, `promcommon.labelset`,
  `promcommon.metric`, `promcommon.fingerprint`);
- alerts and silences with validation (`promcommon.alert`,
  `promcommon.silence`);
- millisecond timestamps and `1d2h`-style durations (`promcommon.timestamp`);
- query result values and their JSON wire format (`promcommon.value`);
- a levelled key/value logger writing logfmt or JSON lines
  (`promcommon.promlog`) and matching `argparse` flags
  (`promcommon.logflags`);
- a WSGI router (`promcommon.route`) and a WSGI static file server
  (`promcommon.static`);
- build information strings (`promcommon.version`).

The only runtime dependency is PyYAML.

## Installation

```
pip install promcommon
```

Running the test suite:

```
pip install "promcommon[test]"
pytest
```

## Labels, metrics and fingerprints

```python
from promcommon.labelset import LabelSet
from promcommon.metric import Metric, is_valid_metric_name
from promcommon.labels import is_valid_label_name
from promcommon.fingerprint import labels_to_signature, signature_for_labels

ls = LabelSet({"foo": "bar", "monitor": "codelab"})
print(ls)                    # {foo="bar", monitor="codelab"}
print(ls.fingerprint())      # 16 hexadecimal digits
ls.validate()                # raises ValueError on a bad name or value

ls2 = LabelSet.from_json('{"foo": "bar"}')   # names are validated
merged = ls.merge({"dolor": "mi"})           # new set; the argument's values win

m = Metric({"__name__": "electro", "occupation": "robot"})
print(m)                     # electro{occupation="robot"}

is_valid_label_name("colon:in:the:middle")   # False
is_valid_metric_name("colon:in:the:middle")  # True
labels_to_signature({})                      # 14695981039346656037
signature_for_labels(m, "occupation")        # hash of only the named labels
```

`LabelSet.before()` gives the ordering used to sort samples and series:
fewer labels first, then the first differing name/value pair in sorted name
order. `FingerprintSet` is a `set` whose `intersection()` returns a
`FingerprintSet`; `parse_fingerprint()` reads a hexadecimal string back into
a `Fingerprint`.

## Durations and timestamps

```python
from promcommon.timestamp import Duration, Time, parse_duration

d = parse_duration("3w2d1h")
print(d)                     # 23d1h
Duration.from_json('"14d"')  # prints as 2w
Duration.from_yaml("5m")

t = Time.from_unix(1136239445)
print(t.to_json())           # 1136239445
Time.from_json("0.001")      # Time(1)
t.add(parse_duration("1h")).sub(t)   # a Duration of one hour
```

Durations accept the units `y`, `w`, `d`, `h`, `m`, `s` and `ms`, in that
order; a year is 365 days and a week 7 days, and a bare `0` is allowed.
Empty, malformed or out-of-range strings (more than about 292 years) raise
`ValueError`. A `Duration` is an `int` of nanoseconds; a `Time` is an `int`
of milliseconds since the Unix epoch.

## Alerts and silences

```python
from datetime import datetime, timedelta, timezone
from promcommon.alert import Alert, Alerts
from promcommon.silence import Matcher, Silence

now = datetime.now(timezone.utc)
alert = Alert(labels={"alertname": "DiskFull", "dev": "sda1"}, starts_at=now)
alert.validate()
print(alert)                 # DiskFull[<7 hex digits>][active]
alert.status()               # AlertStatus.FIRING

alerts = Alerts([alert])
alerts.sort()                # by start time, end time, then fingerprint
alerts.status()              # FIRING while any alert is unresolved

silence = Silence(
    matchers=[Matcher(name="dev", value="sda1")],
    starts_at=now,
    ends_at=now + timedelta(hours=1),
    created_at=now,
    created_by="operator",
    comment="disk replacement",
)
silence.validate()
```

`Alert.validate()`, `Matcher.validate()` and `Silence.validate()` raise
`ValueError` describing the first problem found. Missing times are `None`.

## Query values

`promcommon.value` holds `SampleValue`, `SamplePair`, `Sample`, `Samples`,
`SampleStream`, `Vector`, `Matrix`, `Scalar`, `String` and `ValueType`.
`SamplePair`, `Sample`, `Vector`, `Scalar`, `String` and `ValueType` have
`to_json()` / `from_json()` in the query API wire format, for example
`[1234.567,"123.1"]` for a pair and
`{"metric":{"__name__":"test_metric"},"value":[1234.567,"123.1"]}` for a
sample. `SampleValue.equal()` treats two NaNs as equal.

## Logging

```python
import sys
from promcommon.promlog import AllowedFormat, AllowedLevel, Config, new, new_dynamic

level = AllowedLevel()
level.set("info")
fmt = AllowedFormat()
fmt.set("json")

logger = new(Config(level=level, format=fmt), sys.stderr)
logger.info("msg", "started")     # adds ts, caller and level
logger.debug("msg", "dropped")    # below the allowed level

dynamic = new_dynamic(Config(), sys.stderr)
dynamic.set_level(level)          # the level can be changed later
```

Levels are `debug`, `info`, `warn` and `error`; formats are `logfmt` (the
default) and `json`. Output goes to standard error unless a stream is given.
`AllowedLevel.from_yaml()` reads a level from YAML; an empty document leaves
it unset.

`promcommon.logflags.add_flags(parser, config)` adds `--log.level`
(default `info`) and `--log.format` (default `logfmt`) to an
`argparse.ArgumentParser`, storing the values in the given `Config`.

## Routing and static files

```python
from promcommon.route import Router, file_serve, param

router = Router().with_prefix("/api")

def hello(environ, start_response):
    start_response("200 OK", [("Content-Type", "text/plain")])
    return [f"hello {param(environ, 'name')}".encode()]

router.get("/hello/:name", hello)
router.get("/static/*filepath", file_serve("./public"))
```

`Router` is a WSGI application. Routes take `:name` segment parameters and a
trailing `*name` catch-all, read back with `param(environ, name)`.
`with_prefix()` and `with_instrumentation()` return sub-routers sharing the
same route table; instrumentation functions wrap each handler as it is
registered, in the order they were added. Unmatched paths get a trailing-slash
redirect, `405` with an `Allow` header, or `404`. `Router.redirect()` answers
with a redirect to a path under the router's prefix.

`promcommon.static.static_file_server(root)` returns a WSGI application
serving a directory, setting a fixed content type for common web asset
extensions (`content_type_for(path)` shows which).

## Build information

`promcommon.version` offers `print_version(program)`, `info()` and
`build_context()`, formatted from the module's `VERSION`, `REVISION`,
`BRANCH`, `BUILD_USER` and `BUILD_DATE` values (empty unless set by the
packager) and the running Python version.

## What it does not do

- There is no command-line program; everything here is a library.
- The router and the static file server are WSGI applications only; to serve
  them, run them under a WSGI server such as `wsgiref.simple_server`.
- Build information is offered as text only; no metric is exported for it.
- There is no request signing for outgoing HTTP requests and no HTTP client
  configuration.