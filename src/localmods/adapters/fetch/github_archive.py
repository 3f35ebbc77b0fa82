# src/localmods/adapters/fetch/github_archive.py
from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Optional

import requests

from localmods import __version__
from localmods.adapters.fetch._paths import safe_join, select_subpath
from localmods.config import const
from localmods.ports.fetcher import FetchError, FetchErrorKind, Fetcher

_CHUNK = 1024 * 128


def _extract_zip(src_zip: Path, dest_dir: Path) -> None:
    dest_dir.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(src_zip, "r") as zf:
        for member in zf.namelist():
            # rejects zip-slip entries before anything is written
            safe_join(dest_dir, member)
        zf.extractall(dest_dir)


def _archive_root(extract_dir: Path) -> Path:
    entries = [p for p in extract_dir.iterdir()]
    # GitHub wraps the tree in a single "<owner>-<repo>-<sha>/" directory
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return extract_dir


class GitHubArchiveFetcher(Fetcher):
    """Downloads a branch zipball from the GitHub REST API and unpacks it."""

    def __init__(
        self,
        *,
        api_url: str = const.GITHUB_API_URL,
        timeout: float = const.HTTP_TIMEOUT_SEC,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def archive_url(self, owner: str, repo: str, branch: Optional[str] = None) -> str:
        return f"{self.api_url}/repos/{owner}/{repo}/zipball/{branch or const.DEFAULT_BRANCH}"

    def fetch(
        self,
        owner: str,
        repo: str,
        branch: Optional[str] = None,
        *,
        subpath: Optional[str] = None,
        token: Optional[str] = None,
        workdir: Path,
    ) -> Path:
        coordinate = f"{owner}/{repo}@{branch or const.DEFAULT_BRANCH}"
        workdir = Path(workdir)
        zip_path = workdir / "archive.zip"
        self._download(self.archive_url(owner, repo, branch), zip_path, token=token, coordinate=coordinate)
        extract_dir = workdir / "extract"
        try:
            _extract_zip(zip_path, extract_dir)
        except (zipfile.BadZipFile, ValueError) as exc:
            raise FetchError(FetchErrorKind.NETWORK, f"invalid archive for {coordinate}: {exc}") from exc
        finally:
            zip_path.unlink(missing_ok=True)
        return select_subpath(_archive_root(extract_dir), subpath, coordinate)

    def _download(self, url: str, dest: Path, *, token: Optional[str], coordinate: str) -> None:
        headers = {
            "User-Agent": f"localmods/{__version__}",
            "Accept": "application/vnd.github+json",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            resp = self.session.get(url, headers=headers, timeout=self.timeout, stream=True, allow_redirects=True)
        except requests.RequestException as exc:
            raise FetchError(FetchErrorKind.NETWORK, f"cannot download {coordinate}: {exc}") from exc
        with resp:
            if resp.status_code == 404:
                raise FetchError(FetchErrorKind.NOT_FOUND, f"repository or branch not found: {coordinate}")
            if resp.status_code in (401, 403):
                raise FetchError(FetchErrorKind.AUTH_FAILED, f"access denied to {coordinate} (HTTP {resp.status_code})")
            try:
                resp.raise_for_status()
                dest.parent.mkdir(parents=True, exist_ok=True)
                with open(dest, "wb") as f:
                    for chunk in resp.iter_content(chunk_size=_CHUNK):
                        if chunk:
                            f.write(chunk)
            except requests.RequestException as exc:
                raise FetchError(FetchErrorKind.NETWORK, f"cannot download {coordinate}: {exc}") from exc
