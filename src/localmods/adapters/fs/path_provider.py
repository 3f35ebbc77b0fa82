# src/localmods/adapters/fs/path_provider.py
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from localmods.config import const

if TYPE_CHECKING:
    from localmods.services.settings import Settings

StrOrPath = Union[str, Path]


class HomeDirectoryUnavailable(RuntimeError): ...


def home_dir() -> Path:
    try:
        return Path.home()
    except (RuntimeError, KeyError) as exc:
        raise HomeDirectoryUnavailable("cannot determine the user's home directory") from exc


def normalize_path(value: StrOrPath) -> Path:
    """Accepts both ``\\`` and ``/`` separators and returns an absolute host path."""
    raw = str(value).replace("\\", os.sep).replace("/", os.sep)
    return Path(os.path.abspath(os.path.expanduser(raw)))


def default_base_dir() -> Path:
    home = home_dir()
    if os.name == "nt":
        return home / "AppData" / "Local" / const.BASE_DIR_NAME.lstrip(".")
    return home / const.BASE_DIR_NAME


def resolve_install_root(explicit: Optional[StrOrPath] = None) -> Path:
    if explicit:
        return normalize_path(explicit)
    return default_base_dir() / const.INSTALL_DIR_NAME


def resolve_metadata_dir(install_root: StrOrPath) -> Path:
    return Path(install_root) / const.METADATA_DIR_NAME


@dataclass(frozen=True, slots=True)
class PathProvider:
    """Single source of truth for the paths of a running process."""

    base: Path
    root: Path

    def __init__(self, settings: "Settings"):
        object.__setattr__(self, "base", normalize_path(settings.base_dir))
        object.__setattr__(self, "root", resolve_install_root(settings.install_root))

    def base_dir(self) -> Path:
        return self.base

    def install_root(self) -> Path:
        return self.root

    def metadata_dir(self) -> Path:
        return resolve_metadata_dir(self.root)

    def logs_dir(self) -> Path:
        return self.base / "logs"

    def tmp_dir(self) -> Path:
        return self.base / "tmp"

    def ensure_tree(self) -> None:
        for p in (
            self.base_dir(),
            self.install_root(),
            self.metadata_dir(),
            self.logs_dir(),
            self.tmp_dir(),
        ):
            p.mkdir(parents=True, exist_ok=True)
