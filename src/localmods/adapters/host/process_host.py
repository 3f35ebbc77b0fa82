# src/localmods/adapters/host/process_host.py
from __future__ import annotations

import importlib
import os
import sys
from pathlib import Path
from typing import MutableMapping, Optional

from localmods.ports.host import HostRuntime


def import_name(name: str) -> str:
    return name.replace("-", "_")


def _own_package() -> str:
    return __name__.split(".", 1)[0]


class ProcessHost(HostRuntime):
    """
    The running interpreter as host: a module counts as loaded when its import
    name is in ``sys.modules``; loading a version means putting that version
    directory first on ``sys.path`` and importing afresh.
    """

    def __init__(
        self,
        *,
        package_name: Optional[str] = None,
        install_root: Optional[Path] = None,
        modules: Optional[MutableMapping[str, object]] = None,
        search_path: Optional[list[str]] = None,
    ):
        # resolved once, at construction
        self._package_name = package_name or _own_package()
        self._install_root = Path(install_root) if install_root else None
        self._modules = sys.modules if modules is None else modules
        self._path = sys.path if search_path is None else search_path

    def current_package_name(self) -> Optional[str]:
        return self._package_name

    def is_loaded(self, name: str) -> bool:
        return import_name(name) in self._modules

    def unload(self, name: str) -> None:
        self._purge_modules(import_name(name))
        self._purge_path(name)
        importlib.invalidate_caches()

    def load(self, name: str, version_path: Path) -> None:
        mod = import_name(name)
        self._purge_modules(mod)
        self._purge_path(name)
        self._path.insert(0, str(version_path))
        importlib.invalidate_caches()
        importlib.import_module(mod)

    def _purge_modules(self, mod: str) -> None:
        prefix = mod + "."
        for key in [k for k in self._modules if k == mod or k.startswith(prefix)]:
            del self._modules[key]

    def _purge_path(self, name: str) -> None:
        if self._install_root is None:
            return
        module_root = os.path.normcase(str(self._install_root / name))
        keep = [p for p in self._path if not _is_within(os.path.normcase(p), module_root)]
        self._path[:] = keep


def _is_within(path: str, root: str) -> bool:
    return path == root or path.startswith(root + os.sep)
