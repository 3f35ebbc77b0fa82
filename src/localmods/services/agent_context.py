# src/localmods/services/agent_context.py
from __future__ import annotations
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Optional

from localmods.adapters.fs.path_provider import PathProvider
from localmods.ports import EventBus, Fetcher, HostRuntime, ManifestReader
from localmods.services.module.registry import LifecycleRegistry
from localmods.services.settings import Settings

_CTX: ContextVar[Optional["AppContext"]] = ContextVar("localmods_app_ctx", default=None)


def set_ctx(ctx: "AppContext") -> None:
    """Publish the current AppContext (read back with get_ctx)."""
    _CTX.set(ctx)


def get_ctx() -> "AppContext":
    ctx = _CTX.get()
    if ctx is None:
        raise RuntimeError("AppContext is not initialized. Call set_ctx(...) during app bootstrap.")
    return ctx


def clear_ctx() -> None:
    _CTX.set(None)


@contextmanager
def use_ctx(ctx: "AppContext"):
    """Temporarily swap the context (handy in tests)."""
    token = _CTX.set(ctx)
    try:
        yield ctx
    finally:
        _CTX.reset(token)


@dataclass(slots=True)
class AppContext:
    settings: Settings
    paths: PathProvider
    bus: EventBus
    fetcher: Fetcher
    host: HostRuntime
    manifests: ManifestReader

    _registry: Optional[LifecycleRegistry] = field(default=None, init=False, repr=False)

    @property
    def registry(self) -> LifecycleRegistry:
        reg = self._registry
        if reg is None:
            reg = LifecycleRegistry(
                install_root=self.paths.install_root(),
                manifests=self.manifests,
                host=self.host,
                fetcher=self.fetcher,
                bus=self.bus,
                staging_dir=self.paths.tmp_dir(),
            )
            object.__setattr__(self, "_registry", reg)
        return reg

    def reset_registry(self) -> None:
        object.__setattr__(self, "_registry", None)
