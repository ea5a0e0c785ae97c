import pytest

from promcommon.static import content_type_for, static_file_server


@pytest.fixture
def site(tmp_path):
    for name in ["test.js", "test.css", "test.png", "test.jpg", "test.gif", "notes.md"]:
        (tmp_path / name).write_bytes(b"content")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "a.txt").write_text("alpha")
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "index.html").write_text("<p>hi</p>")
    return tmp_path


def _call(app, path, method="GET"):
    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body = b"".join(app({"REQUEST_METHOD": method, "PATH_INFO": path}, start_response))
    return captured["status"], captured["headers"], body


@pytest.mark.parametrize(
    "path,content_type",
    [
        ("test.js", "application/javascript"),
        ("test.css", "text/css"),
        ("test.png", "image/png"),
        ("test.jpg", "image/jpeg"),
        ("test.gif", "image/gif"),
    ],
)
def test_serve_content_type(site, path, content_type):
    status, headers, body = _call(static_file_server(site), "/" + path)
    assert status.startswith("200")
    assert headers["Content-Type"] == content_type
    assert body == b"content"


def test_index_html_redirects_without_content_type(site):
    status, headers, _ = _call(static_file_server(site), "/index.html")
    assert status.startswith("301")
    assert headers["Location"] == "./"
    assert "Content-Type" not in headers


@pytest.mark.parametrize(
    "path,expected",
    [
        ("index.html", None),
        ("test.js", "application/javascript"),
        ("a/b/font.woff2", "font/woff2"),
        ("style.less", "text/plain"),
        ("noext", None),
    ],
)
def test_content_type_for(path, expected):
    assert content_type_for(path) == expected


def test_missing_file_is_404(site):
    status, headers, body = _call(static_file_server(site), "/missing.js")
    assert status.startswith("404")
    assert body == b"404 page not found\n"


def test_directory_without_slash_redirects(site):
    status, headers, _ = _call(static_file_server(site), "/sub")
    assert status.startswith("301")
    assert headers["Location"] == "sub/"


def test_directory_listing(site):
    status, headers, body = _call(static_file_server(site), "/sub/")
    assert status.startswith("200")
    assert headers["Content-Type"] == "text/html; charset=utf-8"
    assert b'<a href="a.txt">a.txt</a>' in body


def test_directory_index_served(site):
    status, _, body = _call(static_file_server(site), "/docs/")
    assert status.startswith("200")
    assert body == b"<p>hi</p>"


def test_file_with_trailing_slash_redirects(site):
    status, headers, _ = _call(static_file_server(site), "/test.js/")
    assert status.startswith("301")
    assert headers["Location"] == "../test.js"


def test_head_has_no_body(site):
    status, headers, body = _call(static_file_server(site), "/test.js", method="HEAD")
    assert status.startswith("200")
    assert body == b""
    assert headers["Content-Length"] == "7"


def test_traversal_stays_in_root(site):
    status, _, body = _call(static_file_server(site / "sub"), "/../test.js")
    assert status.startswith("404")
    assert body == b"404 page not found\n"