"""A WSGI static file server with a fixed table of content types."""

from __future__ import annotations

import html
import mimetypes
import os
import posixpath
from collections.abc import Callable, Iterable
from http import HTTPStatus
from pathlib import Path
from urllib.parse import quote

MIME_TYPES = {
    ".cjs": "application/javascript",
    ".css": "text/css",
    ".eot": "font/eot",
    ".gif": "image/gif",
    ".ico": "image/x-icon",
    ".jpg": "image/jpeg",
    ".js": "application/javascript",
    ".json": "application/json",
    ".less": "text/plain",
    ".map": "application/json",
    ".otf": "font/otf",
    ".png": "image/png",
    ".svg": "image/svg+xml",
    ".ttf": "font/ttf",
    ".txt": "text/plain",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
}

_INDEX_PAGE = "/index.html"

WSGIApp = Callable[[dict, Callable], Iterable[bytes]]


def _extension(path: str) -> str:
    base = path.rsplit("/", 1)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def content_type_for(path: str) -> str | None:
    """Return the fixed content type for a path's extension, if it has one."""
    return MIME_TYPES.get(_extension(path))


def _clean(url_path: str) -> str:
    cleaned = posixpath.normpath("/" + url_path.lstrip("/"))
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _status(code: int) -> str:
    return f"{code} {HTTPStatus(code).phrase}"


def _guess_type(name: str, data: bytes) -> str:
    guessed, _ = mimetypes.guess_type(name)
    if guessed:
        return guessed + "; charset=utf-8" if guessed.startswith("text/") else guessed
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return "application/octet-stream"
    return "text/plain; charset=utf-8"


def _dir_listing(directory: Path) -> bytes:
    lines = ["<pre>\n"]
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        name = entry.name + ("/" if entry.is_dir() else "")
        lines.append(f'<a href="{html.escape(quote(name))}">{html.escape(name)}</a>\n')
    lines.append("</pre>\n")
    return "".join(lines).encode("utf-8")


def static_file_server(root: str | os.PathLike) -> WSGIApp:
    """Return a WSGI application serving the files below the root directory."""
    root_path = Path(root)

    def app(environ: dict, start_response: Callable) -> Iterable[bytes]:
        url_path = environ.get("PATH_INFO", "") or ""
        if not url_path.startswith("/"):
            url_path = "/" + url_path
        query = environ.get("QUERY_STRING", "")
        headers: dict[str, str] = {}
        fixed_type = content_type_for(url_path)
        if fixed_type is not None:
            headers["Content-Type"] = fixed_type

        def respond(code: int, body: bytes = b"") -> list[bytes]:
            if body:
                headers["Content-Length"] = str(len(body))
            start_response(_status(code), list(headers.items()))
            return [] if environ.get("REQUEST_METHOD") == "HEAD" else [body]

        def redirect(target: str) -> list[bytes]:
            if query:
                target += "?" + query
            headers["Location"] = target
            return respond(301)

        def not_found() -> list[bytes]:
            headers["Content-Type"] = "text/plain; charset=utf-8"
            headers["X-Content-Type-Options"] = "nosniff"
            return respond(404, b"404 page not found\n")

        if url_path.endswith(_INDEX_PAGE):
            return redirect("./")

        name = _clean(url_path)
        target = root_path.joinpath(*[p for p in name.split("/") if p])
        if not target.exists():
            return not_found()

        base = posixpath.basename(url_path.rstrip("/")) if url_path != "/" else ""
        if target.is_dir():
            if not url_path.endswith("/"):
                return redirect(posixpath.basename(url_path) + "/")
            index = target / "index.html"
            if index.is_file():
                target = index
            else:
                headers["Content-Type"] = "text/html; charset=utf-8"
                return respond(200, _dir_listing(target))
        elif url_path.endswith("/"):
            return redirect("../" + base)

        try:
            data = target.read_bytes()
        except OSError:
            return not_found()
        headers.setdefault("Content-Type", _guess_type(target.name, data))
        headers["Content-Length"] = str(len(data))
        start_response(_status(200), list(headers.items()))
        return [] if environ.get("REQUEST_METHOD") == "HEAD" else [data]

    return app