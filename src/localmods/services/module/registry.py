# src/localmods/services/module/registry.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from localmods.adapters.fs.path_provider import normalize_path, resolve_metadata_dir
from localmods.domain import InstalledModuleRecord, LocalSource, RemoteSource, SourceType
from localmods.ports import EventBus, Fetcher, HostRuntime, ManifestReader
from localmods.services.eventbus import emit
from localmods.services.module.errors import (
    AlreadyInstalled,
    CorruptMetadata,
    FetchFailed,
    ModuleRegistryError,
    NotInstalled,
    RemovalFailed,
    SourceUnavailable,
)
from localmods.services.module import events
from localmods.services.module.guard import PendingReloads, SelfReferenceGuard
from localmods.services.module.layout import VersionLayout
from localmods.services.module.metadata_store import MetadataProblem, MetadataStore
from localmods.services.module.reconciler import SourceReconciler, is_valid_name, validate_name
from localmods.services.module.sources import Source, describe, source_from_record

_log = logging.getLogger("localmods.module.registry")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class BatchItem:
    name: str
    record: Optional[InstalledModuleRecord] = None
    error: Optional[ModuleRegistryError] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class BatchReport:
    items: list[BatchItem] = field(default_factory=list)
    reloaded: list[str] = field(default_factory=list)
    # reload problems found while flushing, after the loop
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(i.ok for i in self.items)

    @property
    def failed(self) -> list[BatchItem]:
        return [i for i in self.items if not i.ok]


class LifecycleRegistry:
    """
    Public surface of the module registry: install / update / uninstall / query.

    Layout under ``install_root``::

        <Name>/<Version>/...        side-by-side version directories
        .metadata/<Name>.json       one record per installed module
    """

    def __init__(
        self,
        *,
        install_root: Path,
        manifests: ManifestReader,
        host: HostRuntime,
        fetcher: Optional[Fetcher] = None,
        bus: Optional[EventBus] = None,
        staging_dir: Optional[Path] = None,
    ):
        self.install_root = Path(install_root)
        self.host = host
        self.bus = bus
        self.store = MetadataStore(resolve_metadata_dir(self.install_root))
        self.layout = VersionLayout(self.install_root)
        self.reconciler = SourceReconciler(layout=self.layout, manifests=manifests, fetcher=fetcher, staging_dir=staging_dir)
        self.guard = SelfReferenceGuard.from_host(host)

    # --- read side

    def query(self, name: Optional[str] = None, *, problems: Optional[list[MetadataProblem]] = None) -> list[InstalledModuleRecord]:
        if name is None:
            return self.store.load_all(problems)
        if not is_valid_name(name):
            return []
        try:
            record = self.store.load(name)
        except CorruptMetadata as exc:
            _log.warning("metadata.corrupt", extra={"extra": {"name": name, "error": exc.reason}})
            if problems is not None:
                problems.append(MetadataProblem(path=self.store.path_for(name), reason=exc.reason))
            return []
        return [record] if record else []

    def versions(self, name: str) -> list[str]:
        if not is_valid_name(name):
            return []
        return self.layout.list_versions(name)

    # --- install

    def install(self, source: Source, *, name: Optional[str] = None, overwrite: bool = False) -> InstalledModuleRecord:
        if name is not None:
            name = validate_name(name)
        pending = PendingReloads(self.host)
        warnings: list[str] = []
        try:
            with self.reconciler.materialize(source) as src_dir:
                res = self.reconciler.inspect(src_dir, name=name)
                existing: Optional[InstalledModuleRecord] = None
                if self.store.exists(res.name):
                    if not overwrite:
                        raise AlreadyInstalled(res.name)
                    existing = self._load_tolerant(res.name, warnings)
                version_dir = self.reconciler.stage(src_dir, res)

            now = _utcnow()
            remote = source if isinstance(source, RemoteSource) else None
            record = InstalledModuleRecord(
                name=res.name,
                version=res.version,
                source_type=source.type,
                source_path=remote.coordinate if remote else str(normalize_path(source.path)),
                install_path=str(self.layout.module_root(res.name)),
                latest_version_path=str(version_dir),
                installed_at=existing.installed_at if existing else now,
                last_updated=now if existing else None,
                branch=remote.branch if remote else None,
                module_subpath=remote.subpath if remote else None,
            )
            self.store.save(record)
            _log.info("module.installed", extra={"extra": {"name": record.name, "version": record.version, "source": describe(source)}})
            emit(self.bus, events.INSTALLED, events.Installed(name=record.name, version=record.version, path=record.latest_version_path), events.SOURCE)
            self._refresh(record, pending, warnings)
            return record
        finally:
            self._flush(pending, warnings)

    # --- update

    def update(self, name: str, *, token: Optional[str] = None) -> InstalledModuleRecord:
        pending = PendingReloads(self.host)
        warnings: list[str] = []
        try:
            return self._update_one(name, pending, warnings, token=token)
        finally:
            self._flush(pending, warnings)

    def update_many(self, names: Iterable[str], *, token: Optional[str] = None) -> BatchReport:
        report = BatchReport()
        pending = PendingReloads(self.host)
        try:
            for name in names:
                item = BatchItem(name=name)
                try:
                    item.record = self._update_one(name, pending, item.warnings, token=token)
                except ModuleRegistryError as exc:
                    item.error = exc
                    _log.warning("module.update.failed", extra={"extra": {"name": name, "error": str(exc)}})
                report.items.append(item)
        finally:
            report.reloaded = self._flush(pending, report.warnings)
        return report

    def _update_one(
        self,
        name: str,
        pending: PendingReloads,
        warnings: list[str],
        *,
        token: Optional[str] = None,
    ) -> InstalledModuleRecord:
        record = self._require(name)
        source = source_from_record(record, token=token)
        if isinstance(source, LocalSource) and not Path(source.path).is_dir():
            raise SourceUnavailable(f"source directory of '{record.name}' no longer exists: {source.path}", name=record.name)
        try:
            with self.reconciler.materialize(source) as src_dir:
                res = self.reconciler.inspect(src_dir, name=record.name)
                version_dir = self.reconciler.stage(src_dir, res, copy_error=SourceUnavailable)
        except FetchFailed as exc:
            raise SourceUnavailable(f"source of '{record.name}' is unavailable: {exc}", name=record.name) from exc

        updated = replace(
            record,
            version=res.version,
            install_path=str(self.layout.module_root(record.name)),
            latest_version_path=str(version_dir),
            last_updated=_utcnow(),
        )
        self.store.save(updated)
        _log.info(
            "module.updated",
            extra={"extra": {"name": updated.name, "from": record.version, "to": updated.version}},
        )
        emit(
            self.bus,
            events.UPDATED,
            events.Updated(name=updated.name, previous=record.version, version=updated.version, path=updated.latest_version_path),
            events.SOURCE,
        )
        self._refresh(updated, pending, warnings)
        return updated

    # --- uninstall

    def uninstall(self, name: str) -> list[str]:
        """Returns warnings; raises NotInstalled for unknown names."""
        warnings: list[str] = []
        self._uninstall_one(name, warnings)
        return warnings

    def uninstall_many(self, names: Iterable[str]) -> BatchReport:
        report = BatchReport()
        for name in names:
            item = BatchItem(name=name)
            try:
                self._uninstall_one(name, item.warnings)
            except ModuleRegistryError as exc:
                item.error = exc
                _log.warning("module.uninstall.failed", extra={"extra": {"name": name, "error": str(exc)}})
            report.items.append(item)
        return report

    def _uninstall_one(self, name: str, warnings: list[str]) -> None:
        if not is_valid_name(name) or not self.store.exists(name):
            raise NotInstalled(name)
        record = self._load_tolerant(name, warnings)

        if self.guard.is_self_target(name):
            msg = f"'{name}' hosts the running process; its files are removed but the loaded code stays active until exit"
            warnings.append(msg)
            _log.warning("module.unload.skipped", extra={"extra": {"name": name}})
        elif self.host.is_loaded(name):
            self.host.unload(name)

        # record first; leftover files without a record are orphans
        self.store.delete(name)
        try:
            self.layout.remove_module(name)
        except OSError as exc:
            _log.warning("module.remove.failed", extra={"extra": {"name": name, "error": str(exc)}})
            raise RemovalFailed(name, str(self.layout.module_root(name)), str(exc)) from exc
        _log.info("module.uninstalled", extra={"extra": {"name": name}})
        emit(self.bus, events.UNINSTALLED, events.Uninstalled(name=name, version=record.version if record else None), events.SOURCE)

    # --- helpers

    def _require(self, name: str) -> InstalledModuleRecord:
        if not is_valid_name(name):
            raise NotInstalled(name)
        record = self.store.load(name)
        if record is None:
            raise NotInstalled(name)
        return record

    def _load_tolerant(self, name: str, warnings: list[str]) -> Optional[InstalledModuleRecord]:
        try:
            return self.store.load(name)
        except CorruptMetadata as exc:
            warnings.append(str(exc))
            _log.warning("metadata.corrupt", extra={"extra": {"name": name, "error": exc.reason}})
            return None

    def _refresh(self, record: InstalledModuleRecord, pending: PendingReloads, warnings: list[str]) -> None:
        if not self.host.is_loaded(record.name):
            return
        version_dir = Path(record.latest_version_path)
        if self.guard.is_self_target(record.name):
            pending.defer(record.name, version_dir)
            emit(self.bus, events.RELOAD_DEFERRED, events.Reload(name=record.name, path=str(version_dir)), events.SOURCE)
            return
        try:
            self.host.load(record.name, version_dir)
        except (ImportError, SyntaxError) as exc:
            warnings.append(f"module '{record.name}' was staged but could not be reloaded: {exc}")
            _log.warning("reload.failed", extra={"extra": {"name": record.name, "error": str(exc)}})
            return
        emit(self.bus, events.RELOADED, events.Reload(name=record.name, path=str(version_dir)), events.SOURCE)

    def _flush(self, pending: PendingReloads, warnings: list[str]) -> list[str]:
        if not len(pending):
            return []
        reloaded = pending.flush(warnings)
        for name in reloaded:
            emit(self.bus, events.RELOADED, events.Reload(name=name, deferred=True), events.SOURCE)
        return reloaded
