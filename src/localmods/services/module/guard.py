# src/localmods/services/module/guard.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from localmods.ports import HostRuntime

_log = logging.getLogger("localmods.module.guard")


@dataclass(frozen=True, slots=True)
class SelfReferenceGuard:
    """
    Knows which module hosts the running tool. Uninstall of that module keeps
    its code loaded and an update of it postpones the in-process reload until
    the whole batch is done.
    """

    own_name: Optional[str]

    @classmethod
    def from_host(cls, host: HostRuntime) -> "SelfReferenceGuard":
        return cls(own_name=host.current_package_name())

    def is_self_target(self, name: str) -> bool:
        if not self.own_name:
            return False
        return os.path.normcase(name) == os.path.normcase(self.own_name)


@dataclass(slots=True)
class PendingReloads:
    """Deferred reloads of one batch; drained by a single ``flush``."""

    host: HostRuntime
    _items: dict[str, Path] = field(default_factory=dict)

    def defer(self, name: str, version_path: Path) -> None:
        # last staged version wins
        self._items[name] = Path(version_path)

    def __len__(self) -> int:
        return len(self._items)

    def flush(self, warnings: Optional[list[str]] = None) -> list[str]:
        items, self._items = self._items, {}
        reloaded: list[str] = []
        for name, path in items.items():
            try:
                self.host.load(name, path)
            except (ImportError, SyntaxError) as exc:
                msg = f"module '{name}' was updated on disk but could not be reloaded: {exc}"
                _log.warning("reload.failed", extra={"extra": {"name": name, "path": str(path), "error": str(exc)}})
                if warnings is not None:
                    warnings.append(msg)
                continue
            reloaded.append(name)
        return reloaded
