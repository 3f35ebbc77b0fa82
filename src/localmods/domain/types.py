# src/localmods/domain/types.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Mapping


class SourceType(str, Enum):
    LOCAL = "Local"
    GITHUB = "GitHub"


@dataclass(frozen=True, slots=True)
class LocalSource:
    path: Path
    type: ClassVar[SourceType] = SourceType.LOCAL


@dataclass(frozen=True, slots=True)
class RemoteSource:
    owner: str
    repo: str
    branch: str | None = None
    subpath: str | None = None
    # never persisted
    token: str | None = field(default=None, repr=False, compare=False)
    type: ClassVar[SourceType] = SourceType.GITHUB

    @property
    def coordinate(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True, slots=True)
class Event:
    type: str
    payload: Mapping[str, Any]
    source: str
    ts: float
