# tests/test_github_archive.py
from __future__ import annotations

import io
import zipfile

import pytest
import requests

from localmods.adapters.fetch import GitHubArchiveFetcher
from localmods.ports import FetchError, FetchErrorKind


def _zip(entries: dict[str, str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in entries.items():
            zf.writestr(name, content)
    return buf.getvalue()


def _response(status: int, body: bytes = b"", url: str = "https://api.github.com/x") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.raw = io.BytesIO(body)
    resp.url = url
    return resp


class FakeSession:
    def __init__(self, result):
        self.result = result
        self.requests: list[tuple[str, dict]] = []

    def get(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


REPO_ZIP = {
    "acme-widgets-abc123/README.md": "hello",
    "acme-widgets-abc123/modules/gear/module.yaml": "name: Gear\nversion: '1.0.0'\n",
    "acme-widgets-abc123/modules/gear/main.py": "x = 1\n",
}


def test_archive_url_defaults_to_main():
    f = GitHubArchiveFetcher(api_url="https://api.example.com/")
    assert f.archive_url("acme", "widgets") == "https://api.example.com/repos/acme/widgets/zipball/main"
    assert f.archive_url("acme", "widgets", "dev").endswith("/zipball/dev")


def test_fetch_unwraps_archive_root(tmp_path):
    session = FakeSession(_response(200, _zip(REPO_ZIP)))
    f = GitHubArchiveFetcher(session=session)

    tree = f.fetch("acme", "widgets", workdir=tmp_path)

    assert (tree / "README.md").read_text(encoding="utf-8") == "hello"
    assert not (tmp_path / "archive.zip").exists()


def test_fetch_subpath_and_token_header(tmp_path):
    session = FakeSession(_response(200, _zip(REPO_ZIP)))
    f = GitHubArchiveFetcher(session=session, timeout=7)

    tree = f.fetch("acme", "widgets", "dev", subpath="modules/gear", token="s3cret", workdir=tmp_path)

    assert (tree / "module.yaml").is_file()
    url, kwargs = session.requests[0]
    assert url.endswith("/repos/acme/widgets/zipball/dev")
    assert kwargs["headers"]["Authorization"] == "Bearer s3cret"
    assert kwargs["timeout"] == 7


def test_missing_subpath_is_not_found(tmp_path):
    f = GitHubArchiveFetcher(session=FakeSession(_response(200, _zip(REPO_ZIP))))
    with pytest.raises(FetchError) as excinfo:
        f.fetch("acme", "widgets", subpath="modules/nope", workdir=tmp_path)
    assert excinfo.value.kind is FetchErrorKind.NOT_FOUND


@pytest.mark.parametrize(
    "status, kind",
    [
        (404, FetchErrorKind.NOT_FOUND),
        (401, FetchErrorKind.AUTH_FAILED),
        (403, FetchErrorKind.AUTH_FAILED),
        (500, FetchErrorKind.NETWORK),
    ],
)
def test_http_status_mapping(tmp_path, status, kind):
    f = GitHubArchiveFetcher(session=FakeSession(_response(status)))
    with pytest.raises(FetchError) as excinfo:
        f.fetch("acme", "widgets", workdir=tmp_path)
    assert excinfo.value.kind is kind


def test_connection_error_is_network(tmp_path):
    f = GitHubArchiveFetcher(session=FakeSession(requests.ConnectionError("offline")))
    with pytest.raises(FetchError) as excinfo:
        f.fetch("acme", "widgets", workdir=tmp_path)
    assert excinfo.value.kind is FetchErrorKind.NETWORK


def test_zip_slip_rejected(tmp_path):
    body = _zip({"../evil.txt": "boom"})
    f = GitHubArchiveFetcher(session=FakeSession(_response(200, body)))
    with pytest.raises(FetchError):
        f.fetch("acme", "widgets", workdir=tmp_path / "work")
    assert not (tmp_path / "evil.txt").exists()


def test_garbage_body_rejected(tmp_path):
    f = GitHubArchiveFetcher(session=FakeSession(_response(200, b"not a zip")))
    with pytest.raises(FetchError) as excinfo:
        f.fetch("acme", "widgets", workdir=tmp_path)
    assert excinfo.value.kind is FetchErrorKind.NETWORK
