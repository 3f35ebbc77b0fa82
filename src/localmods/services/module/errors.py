"""Typed failures of the module lifecycle registry."""

from __future__ import annotations

from typing import Optional

from localmods.ports.fetcher import FetchErrorKind

__all__ = [
    "ModuleRegistryError",
    "AlreadyInstalled",
    "NotInstalled",
    "InvalidSource",
    "InvalidModuleName",
    "FetchFailed",
    "SourceUnavailable",
    "CorruptMetadata",
    "RemovalFailed",
]


class ModuleRegistryError(RuntimeError):
    """Base class; ``name`` is the module the operation targeted, when known."""

    def __init__(self, message: str, *, name: Optional[str] = None) -> None:
        self.name = name
        super().__init__(message)


class AlreadyInstalled(ModuleRegistryError):
    def __init__(self, name: str) -> None:
        super().__init__(f"module '{name}' is already installed (use overwrite to replace it)", name=name)


class NotInstalled(ModuleRegistryError, LookupError):
    def __init__(self, name: str) -> None:
        super().__init__(f"module '{name}' is not installed", name=name)


class InvalidSource(ModuleRegistryError, ValueError):
    """Missing / ambiguous / unreadable manifest, bad source path or bad remote coordinate."""


class InvalidModuleName(InvalidSource):
    def __init__(self, name: str) -> None:
        super().__init__(f"invalid module name: {name!r}", name=name)


class FetchFailed(ModuleRegistryError):
    def __init__(self, message: str, *, kind: FetchErrorKind, name: Optional[str] = None) -> None:
        self.kind = kind
        super().__init__(message, name=name)


class SourceUnavailable(ModuleRegistryError):
    """The source recorded for an installed module can no longer be read."""


class CorruptMetadata(ModuleRegistryError):
    def __init__(self, name: str, reason: str) -> None:
        self.reason = reason
        super().__init__(f"metadata for '{name}' is unreadable: {reason}", name=name)


class RemovalFailed(ModuleRegistryError):
    """The record is gone but files under the module directory could not be deleted."""

    def __init__(self, name: str, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"module '{name}' was unregistered but {path} could not be fully removed: {reason}", name=name)
