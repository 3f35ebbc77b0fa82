# src/localmods/adapters/fetch/git_clone.py
from __future__ import annotations

from pathlib import Path
from typing import Optional
from urllib.parse import urlparse, urlunparse

from git import Repo
from git.exc import GitCommandError

from localmods.adapters.fetch._paths import select_subpath
from localmods.config import const
from localmods.ports.fetcher import FetchError, FetchErrorKind, Fetcher
from localmods.services.fs.safe_io import remove_tree

_AUTH_MARKERS = ("authentication failed", "could not read username", "permission denied", "403")
_NOT_FOUND_MARKERS = ("not found", "does not exist", "remote branch", "couldn't find remote ref", "does not appear to be a git repository")


def _classify(exc: GitCommandError) -> FetchErrorKind:
    stderr = str(exc.stderr or exc).lower()
    if any(m in stderr for m in _AUTH_MARKERS):
        return FetchErrorKind.AUTH_FAILED
    if any(m in stderr for m in _NOT_FOUND_MARKERS):
        return FetchErrorKind.NOT_FOUND
    return FetchErrorKind.NETWORK


class GitCloneFetcher(Fetcher):
    """Shallow ``git clone`` of ``{base_url}/{owner}/{repo}`` via GitPython; ``.git`` is dropped."""

    def __init__(self, *, base_url: str = const.GITHUB_URL, depth: int = 1):
        self.base_url = base_url.rstrip("/")
        self.depth = depth

    def clone_url(self, owner: str, repo: str, token: Optional[str] = None) -> str:
        url = f"{self.base_url}/{owner}/{repo}"
        parsed = urlparse(url)
        if token and parsed.scheme == "https":
            parsed = parsed._replace(netloc=f"x-access-token:{token}@{parsed.netloc}")
            return urlunparse(parsed)
        return url

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
        coordinate = f"{owner}/{repo}@{branch or 'HEAD'}"
        dest = Path(workdir) / repo
        kwargs = {}
        if self.depth > 0:
            kwargs["depth"] = self.depth
        if branch:
            kwargs["branch"] = branch
        try:
            repo_obj = Repo.clone_from(self.clone_url(owner, repo, token), str(dest), **kwargs)
        except GitCommandError as exc:
            # never echo the token back
            message = str(exc.stderr or exc).strip()
            if token:
                message = message.replace(token, "***")
            raise FetchError(_classify(exc), f"cannot clone {coordinate}: {message}") from exc
        repo_obj.close()
        remove_tree(dest / ".git")
        return select_subpath(dest, subpath, coordinate)
