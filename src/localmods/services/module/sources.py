# src/localmods/services/module/sources.py
from __future__ import annotations

import re
from pathlib import Path, PurePosixPath
from typing import Optional, Union
from urllib.parse import urlparse

from localmods.adapters.fs.path_provider import normalize_path
from localmods.domain import InstalledModuleRecord, LocalSource, RemoteSource, SourceType
from localmods.services.module.errors import InvalidSource

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")

Source = Union[LocalSource, RemoteSource]


def clean_subpath(value: Optional[str]) -> Optional[str]:
    """Relative POSIX subpath without ``..``; empty -> None."""
    if value is None:
        return None
    text = value.replace("\\", "/").strip().strip("/")
    if not text:
        return None
    parts = PurePosixPath(text).parts
    if any(p in ("..", ".") for p in parts):
        raise InvalidSource(f"invalid module subpath: {value!r}")
    return "/".join(parts)


def _check_segment(value: str, what: str, raw: str) -> str:
    if not _SEGMENT_RE.fullmatch(value) or value in {".", ".."}:
        raise InvalidSource(f"invalid remote coordinate {raw!r}: bad {what}")
    return value


def parse_remote(
    value: str,
    *,
    branch: Optional[str] = None,
    subpath: Optional[str] = None,
    token: Optional[str] = None,
) -> RemoteSource:
    """
    ``owner/repo`` or ``https://github.com/owner/repo[.git][/tree/<branch>[/<subpath>]]``.
    Explicit ``branch`` / ``subpath`` win over the ones embedded in a URL.
    """
    raw = (value or "").strip()
    if not raw:
        raise InvalidSource("empty remote coordinate")
    url_branch: Optional[str] = None
    url_subpath: Optional[str] = None
    if "://" in raw:
        parsed = urlparse(raw)
        if parsed.netloc.lower() not in {"github.com", "www.github.com"}:
            raise InvalidSource(f"invalid remote coordinate {raw!r}: only github.com is supported")
        parts = [p for p in parsed.path.split("/") if p]
        if len(parts) < 2:
            raise InvalidSource(f"invalid remote coordinate {raw!r}: expected owner/repo")
        owner, repo = parts[0], parts[1]
        if len(parts) >= 4 and parts[2] == "tree":
            url_branch = parts[3]
            url_subpath = "/".join(parts[4:]) or None
        elif len(parts) > 2:
            raise InvalidSource(f"invalid remote coordinate {raw!r}")
    else:
        parts = raw.split("/")
        if len(parts) != 2:
            raise InvalidSource(f"invalid remote coordinate {raw!r}: expected owner/repo")
        owner, repo = parts
    if repo.endswith(".git"):
        repo = repo[:-4]
    return RemoteSource(
        owner=_check_segment(owner, "owner", raw),
        repo=_check_segment(repo, "repository", raw),
        branch=(branch or url_branch or None),
        subpath=clean_subpath(subpath if subpath is not None else url_subpath),
        token=token,
    )


def local_source(path: Union[str, Path]) -> LocalSource:
    return LocalSource(path=normalize_path(path))


def source_from_record(record: InstalledModuleRecord, *, token: Optional[str] = None) -> Source:
    """Rebuild the descriptor an installed module was taken from."""
    if record.source_type is SourceType.LOCAL:
        return LocalSource(path=normalize_path(record.source_path))
    owner, _, repo = record.source_path.partition("/")
    return RemoteSource(owner=owner, repo=repo, branch=record.branch, subpath=record.module_subpath, token=token)


def describe(source: Source) -> str:
    if isinstance(source, LocalSource):
        return str(source.path)
    text = source.coordinate
    if source.branch:
        text += f"@{source.branch}"
    if source.subpath:
        text += f":{source.subpath}"
    return text
