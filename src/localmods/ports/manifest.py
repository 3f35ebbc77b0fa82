from __future__ import annotations
from pathlib import Path
from typing import Protocol

from localmods.domain import ManifestInfo


class ManifestReader(Protocol):
    def discover(self, source_dir: Path) -> Path:
        """Return the single manifest file of ``source_dir`` (InvalidSource on none / ambiguous)."""
        ...

    def read(self, path: Path) -> ManifestInfo: ...
