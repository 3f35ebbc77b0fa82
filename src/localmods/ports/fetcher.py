# src/localmods/ports/fetcher.py
from __future__ import annotations
from enum import Enum
from pathlib import Path
from typing import Optional, Protocol


class FetchErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    AUTH_FAILED = "auth_failed"
    NETWORK = "network"


class FetchError(RuntimeError):
    """Raised by fetchers; the registry turns it into FetchFailed / SourceUnavailable."""

    def __init__(self, kind: FetchErrorKind, message: str) -> None:
        self.kind = kind
        super().__init__(message)


class Fetcher(Protocol):
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
        """Materialize ``owner/repo`` (optionally only ``subpath``) below ``workdir`` and return its directory."""
        ...
