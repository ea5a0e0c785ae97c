"""A WSGI router with path parameters, prefixes and instrumentation."""

from __future__ import annotations

import html
import os
import posixpath
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any
from urllib.parse import urlsplit

from promcommon.static import static_file_server

WSGIApp = Callable[[dict, Callable], Iterable[bytes]]
Instrument = Callable[[str, WSGIApp], WSGIApp]

_PARAMS_KEY = "promcommon.route.params"
_WILDCARD_RE = re.compile(r"[:*]([^/]+)")


def param(environ: dict, name: str) -> str:
    """Return the named request parameter, or "" when it is not set."""
    return environ.get(_PARAMS_KEY, {}).get(name, "")


def with_param(environ: dict, name: str, value: str) -> dict:
    """Return a copy of the environment with the parameter set."""
    updated = dict(environ)
    updated[_PARAMS_KEY] = {**environ.get(_PARAMS_KEY, {}), name: value}
    return updated


def _status(code: int) -> str:
    return f"{code} {HTTPStatus(code).phrase}"


def _compile(path: str) -> tuple[re.Pattern, tuple[str, ...]]:
    if not path.startswith("/"):
        raise ValueError(f"path must begin with '/' in path {path!r}")
    pattern = ""
    names = []
    pos = 0
    for match in _WILDCARD_RE.finditer(path):
        literal = path[pos:match.start()]
        if match.group(0).startswith(":"):
            pattern += re.escape(literal) + "([^/]+)"
        else:
            if match.end() != len(path):
                raise ValueError(f"catch-all routes must end the path in {path!r}")
            if not literal.endswith("/"):
                raise ValueError(f"no / before catch-all in path {path!r}")
            pattern += re.escape(literal[:-1]) + "(/.*)"
        names.append(match.group(1))
        pos = match.end()
    pattern += re.escape(path[pos:])
    return re.compile(pattern), tuple(names)


@dataclass
class _Route:
    path: str
    pattern: re.Pattern
    names: tuple[str, ...]
    app: Callable[[dict, Callable, dict], Any]

    def match(self, path: str) -> dict | None:
        found = self.pattern.fullmatch(path)
        if found is None:
            return None
        return dict(zip(self.names, found.groups()))


class _RouteTable:
    def __init__(self) -> None:
        self._routes: dict[str, list[_Route]] = {}

    def add(self, method: str, path: str, app: Callable) -> None:
        routes = self._routes.setdefault(method, [])
        if any(route.path == path for route in routes):
            raise ValueError(f"a handle is already registered for {method} {path}")
        pattern, names = _compile(path)
        routes.append(_Route(path, pattern, names, app))
        # Static routes take precedence over parameterised ones.
        routes.sort(key=lambda route: len(route.names))

    def has_method(self, method: str) -> bool:
        return method in self._routes

    def lookup(self, method: str, path: str) -> tuple[_Route, dict] | None:
        for route in self._routes.get(method, ()):
            params = route.match(path)
            if params is not None:
                return route, params
        return None

    def allowed(self, path: str, method: str) -> str:
        methods = sorted(
            m
            for m in self._routes
            if m not in (method, "OPTIONS")
            and (path == "*" or self.lookup(m, path) is not None)
        )
        if not methods:
            return ""
        return ", ".join([*methods, "OPTIONS"])


def _redirect_response(
    environ: dict, start_response: Callable, url: str, code: int
) -> list[bytes]:
    parts = urlsplit(url)
    if not parts.scheme and not parts.netloc:
        path, sep, query = url.partition("?")
        if not path:
            path = "/"
        if not path.startswith("/"):
            old_dir = posixpath.dirname(environ.get("PATH_INFO", "") or "/")
            path = old_dir.rstrip("/") + "/" + path
        trailing = path.endswith("/")
        path = posixpath.normpath(path)
        if path.startswith("//"):
            path = "/" + path.lstrip("/")
        if trailing and not path.endswith("/"):
            path += "/"
        url = path + sep + query
    headers = [("Location", url)]
    method = environ.get("REQUEST_METHOD", "GET").upper()
    body = b""
    if method in ("GET", "HEAD"):
        headers.append(("Content-Type", "text/html; charset=utf-8"))
    if method == "GET":
        escaped = html.escape(url).replace("&#x27;", "&#39;")
        body = f'<a href="{escaped}">{HTTPStatus(code).phrase}</a>.\n\n'.encode()
    start_response(_status(code), headers)
    return [body] if body else []


def _error(
    start_response: Callable, code: int, text: str, extra: list | None = None
) -> list[bytes]:
    headers = [
        ("Content-Type", "text/plain; charset=utf-8"),
        ("X-Content-Type-Options", "nosniff"),
        *(extra or []),
    ]
    start_response(_status(code), headers)
    return [(text + "\n").encode()]


class Router:
    """Routes WSGI requests by method and path, with shared sub-routers."""

    def __init__(self) -> None:
        self._table = _RouteTable()
        self._prefix = ""
        self._instrument: Instrument | None = None

    def _derive(self, prefix: str, instrument: Instrument | None) -> "Router":
        child = Router.__new__(Router)
        child._table = self._table
        child._prefix = prefix
        child._instrument = instrument
        return child

    def with_instrumentation(self, instrument: Instrument) -> "Router":
        """Return a router that wraps each handler it registers."""
        previous = self._instrument
        if previous is None:
            return self._derive(self._prefix, instrument)

        def chained(name: str, handler: WSGIApp) -> WSGIApp:
            return instrument(name, previous(name, handler))

        return self._derive(self._prefix, chained)

    def with_prefix(self, prefix: str) -> "Router":
        """Return a router that prefixes all registered routes."""
        return self._derive(self._prefix + prefix, self._instrument)

    def _handle(self, name: str, handler: WSGIApp) -> Callable:
        if self._instrument is not None:
            handler = self._instrument(name, handler)

        def app(environ: dict, start_response: Callable, params: dict) -> Any:
            env = dict(environ)
            env[_PARAMS_KEY] = {**environ.get(_PARAMS_KEY, {}), **params}
            return handler(env, start_response)

        return app

    def _register(self, method: str, path: str, handler: WSGIApp) -> None:
        self._table.add(method, self._prefix + path, self._handle(path, handler))

    def get(self, path: str, handler: WSGIApp) -> None:
        """Register a GET route."""
        self._register("GET", path, handler)

    def options(self, path: str, handler: WSGIApp) -> None:
        """Register an OPTIONS route."""
        self._register("OPTIONS", path, handler)

    def delete(self, path: str, handler: WSGIApp) -> None:
        """Register a DELETE route."""
        self._register("DELETE", path, handler)

    def put(self, path: str, handler: WSGIApp) -> None:
        """Register a PUT route."""
        self._register("PUT", path, handler)

    def post(self, path: str, handler: WSGIApp) -> None:
        """Register a POST route."""
        self._register("POST", path, handler)

    def head(self, path: str, handler: WSGIApp) -> None:
        """Register a HEAD route."""
        self._register("HEAD", path, handler)

    def redirect(
        self, environ: dict, start_response: Callable, path: str, code: int
    ) -> list[bytes]:
        """Respond with a redirect to an absolute path under the prefix."""
        return _redirect_response(environ, start_response, self._prefix + path, code)

    def __call__(self, environ: dict, start_response: Callable) -> Any:
        method = environ.get("REQUEST_METHOD", "GET").upper()
        path = environ.get("PATH_INFO", "") or "/"

        found = self._table.lookup(method, path)
        if found is not None:
            route, params = found
            return route.app(environ, start_response, params)

        if self._table.has_method(method) and path != "/":
            alternative = path[:-1] if path.endswith("/") else path + "/"
            if self._table.lookup(method, alternative) is not None:
                code = 301 if method == "GET" else 307
                query = environ.get("QUERY_STRING", "")
                location = alternative + ("?" + query if query else "")
                return _redirect_response(environ, start_response, location, code)

        allow = self._table.allowed(path, method)
        if method == "OPTIONS":
            if allow:
                start_response(_status(200), [("Allow", allow)])
                return []
        elif allow:
            return _error(
                start_response, 405, HTTPStatus(405).phrase, [("Allow", allow)]
            )
        return _error(start_response, 404, "404 page not found")


def file_serve(directory: str | os.PathLike) -> WSGIApp:
    """Return a handler serving files below directory by the filepath parameter."""
    files = static_file_server(directory)

    def app(environ: dict, start_response: Callable) -> Iterable[bytes]:
        env = dict(environ)
        env["PATH_INFO"] = param(environ, "filepath")
        return files(env, start_response)

    return app