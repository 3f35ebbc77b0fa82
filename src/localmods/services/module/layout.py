# src/localmods/services/module/layout.py
from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from localmods.config import const
from localmods.domain import ManifestInfo
from localmods.services.fs.safe_io import remove_tree

_log = logging.getLogger("localmods.module.layout")

_VERSION_RE = re.compile(r"^[0-9A-Za-z][0-9A-Za-z.+_\-]*$")
_KEY_PART_RE = re.compile(r"(\d+)")


def is_usable_version(version: Optional[str]) -> bool:
    return bool(version) and bool(_VERSION_RE.fullmatch(version)) and version not in {".", ".."}


def resolve_version(manifest: ManifestInfo) -> str:
    """Manifest version when present and usable as a directory name, else DEFAULT_VERSION."""
    if is_usable_version(manifest.version):
        return manifest.version  # type: ignore[return-value]
    return const.DEFAULT_VERSION


def version_key(version: str) -> tuple:
    # natural order: 1.10.0 > 1.9.0, numeric parts before text parts
    parts = []
    for chunk in _KEY_PART_RE.split(version):
        if not chunk:
            continue
        if chunk.isdigit():
            parts.append((1, int(chunk), ""))
        else:
            parts.append((0, 0, chunk))
    return tuple(parts)


class VersionLayout:
    """``<install_root>/<Name>/<Version>/`` side-by-side version directories."""

    def __init__(self, install_root: Path):
        self.install_root = Path(install_root)

    def module_root(self, name: str) -> Path:
        return self.install_root / name

    def version_dir(self, name: str, version: str) -> Path:
        return self.module_root(name) / version

    def allocate(self, name: str, version: str) -> Path:
        """Re-allocating an existing version is a full replace, never a merge."""
        target = self.version_dir(name, version)
        remove_tree(target)
        target.mkdir(parents=True)
        return target

    def staging_dir(self, name: str) -> Path:
        """Fresh hidden sibling of the version directories; ignored by ``list_versions``."""
        root = self.module_root(name)
        root.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix=".staging-", dir=str(root)))

    def commit(self, name: str, version: str, staged: Path) -> Path:
        """
        Move a verified staging directory to ``<name>/<version>``.

        An existing directory of that version is swapped out first and only
        deleted once the new one is in place, so a failed rename restores it.
        """
        target = self.version_dir(name, version)
        retired: Optional[Path] = None
        if target.exists():
            retired = Path(tempfile.mkdtemp(prefix=".retired-", dir=str(self.module_root(name))))
            retired.rmdir()
            os.replace(target, retired)
        try:
            os.replace(staged, target)
        except OSError:
            if retired is not None:
                os.replace(retired, target)
            raise
        if retired is not None:
            try:
                remove_tree(retired)
            except OSError as exc:
                # hidden, never listed
                _log.warning("layout.retired.leftover", extra={"extra": {"path": str(retired), "error": str(exc)}})
        return target

    def list_versions(self, name: str) -> list[str]:
        root = self.module_root(name)
        if not root.is_dir():
            return []
        names = [p.name for p in root.iterdir() if p.is_dir() and not p.name.startswith(".")]
        return sorted(names, key=version_key)

    def latest(self, name: str) -> Optional[str]:
        versions = self.list_versions(name)
        return versions[-1] if versions else None

    def remove_module(self, name: str) -> bool:
        return remove_tree(self.module_root(name))
