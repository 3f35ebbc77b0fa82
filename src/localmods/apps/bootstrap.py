# src/localmods/apps/bootstrap.py
from __future__ import annotations
from typing import Optional
from threading import RLock

from localmods.adapters.fetch import GitCloneFetcher, GitHubArchiveFetcher
from localmods.adapters.fs.path_provider import PathProvider
from localmods.adapters.host.process_host import ProcessHost
from localmods.adapters.manifest.yaml_manifest import YamlManifestReader
from localmods.ports import Fetcher
from localmods.services.agent_context import AppContext, set_ctx
from localmods.services.eventbus import LocalEventBus
from localmods.services.logging import setup_logging, attach_event_logger
from localmods.services.settings import Settings


def build_fetcher(settings: Settings) -> Fetcher:
    if settings.fetcher == "git":
        return GitCloneFetcher(base_url=settings.github_url)
    return GitHubArchiveFetcher(api_url=settings.github_api_url, timeout=settings.http_timeout)


class _CtxHolder:
    _ctx: Optional[AppContext] = None
    _lock = RLock()

    @classmethod
    def get(cls) -> AppContext:
        with cls._lock:
            if cls._ctx is None:
                cls._ctx = cls._build(Settings.from_sources())
                set_ctx(cls._ctx)
            return cls._ctx

    @classmethod
    def init(cls, settings: Optional[Settings] = None) -> AppContext:
        with cls._lock:
            cls._ctx = cls._build(settings or Settings.from_sources())
            set_ctx(cls._ctx)
            return cls._ctx

    @classmethod
    def reload(cls, **overrides) -> AppContext:
        """Rebuild from the current settings with ``overrides`` applied."""
        with cls._lock:
            old = cls._ctx or cls._build(Settings.from_sources())
            cls._ctx = cls._build(old.settings.with_overrides(**overrides))
            set_ctx(cls._ctx)
            return cls._ctx

    @staticmethod
    def _build(settings: Settings) -> AppContext:
        paths = PathProvider(settings)
        paths.ensure_tree()

        bus = LocalEventBus()
        root_logger = setup_logging(paths, settings.log_level)
        attach_event_logger(bus, root_logger.getChild("events"))

        return AppContext(
            settings=settings,
            paths=paths,
            bus=bus,
            fetcher=build_fetcher(settings),
            host=ProcessHost(package_name=settings.host_package, install_root=paths.install_root()),
            manifests=YamlManifestReader(),
        )


def get_ctx() -> AppContext:
    return _CtxHolder.get()


def init_ctx(settings: Optional[Settings] = None) -> AppContext:
    return _CtxHolder.init(settings)


def reload_ctx(**overrides) -> AppContext:
    return _CtxHolder.reload(**overrides)
