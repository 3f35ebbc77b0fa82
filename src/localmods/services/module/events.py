"""Event types published by the lifecycle registry and their payloads."""

from __future__ import annotations

from typing import Optional, TypedDict

SOURCE = "module.registry"

INSTALLED = "module.installed"
UPDATED = "module.updated"
UNINSTALLED = "module.uninstalled"
RELOAD_DEFERRED = "module.reload.deferred"
RELOADED = "module.reloaded"


class Installed(TypedDict):
    name: str
    version: str
    path: str


class Updated(Installed):
    previous: str


class Uninstalled(TypedDict):
    name: str
    # None when the record was unreadable
    version: Optional[str]


class _Reload(TypedDict):
    name: str


class Reload(_Reload, total=False):
    path: str
    # reloaded after the batch instead of right away
    deferred: bool
