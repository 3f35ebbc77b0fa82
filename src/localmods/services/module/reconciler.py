# src/localmods/services/module/reconciler.py
from __future__ import annotations

import logging
import re
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Type

from localmods.domain import LocalSource, ManifestInfo, RemoteSource
from localmods.ports import Fetcher, FetchError, FetchErrorKind, ManifestReader
from localmods.services.fs.safe_io import copy_tree, remove_tree
from localmods.services.module.errors import FetchFailed, InvalidModuleName, InvalidSource, ModuleRegistryError
from localmods.services.module.layout import VersionLayout, resolve_version
from localmods.services.module.sources import Source, describe

_log = logging.getLogger("localmods.module.reconciler")

_NAME_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.\-]*$")


def is_valid_name(name: Optional[str]) -> bool:
    return bool(name) and bool(_NAME_RE.fullmatch(name)) and name not in {".", ".."}


def validate_name(name: str) -> str:
    name = (name or "").strip()
    if not is_valid_name(name):
        raise InvalidModuleName(name)
    return name


@dataclass(frozen=True, slots=True)
class Resolution:
    name: str
    version: str
    manifest: ManifestInfo


class SourceReconciler:
    """
    Turns a source descriptor into a staged version directory:
      materialize(source) -> local tree
      inspect(tree)       -> name / version
      stage(tree, res)    -> <install_root>/<name>/<version>
    """

    def __init__(
        self,
        *,
        layout: VersionLayout,
        manifests: ManifestReader,
        fetcher: Optional[Fetcher] = None,
        staging_dir: Optional[Path] = None,
    ):
        self.layout = layout
        self.manifests = manifests
        self.fetcher = fetcher
        self.staging_dir = Path(staging_dir) if staging_dir else None

    @contextmanager
    def materialize(self, source: Source) -> Iterator[Path]:
        if isinstance(source, LocalSource):
            path = Path(source.path)
            if not path.is_dir():
                raise InvalidSource(f"source directory does not exist: {path}")
            yield path
            return
        with self._fetched(source) as path:
            yield path

    @contextmanager
    def _fetched(self, source: RemoteSource) -> Iterator[Path]:
        if self.fetcher is None:
            raise FetchFailed(f"no fetcher configured for {describe(source)}", kind=FetchErrorKind.NETWORK)
        if self.staging_dir is not None:
            self.staging_dir.mkdir(parents=True, exist_ok=True)
        workdir = Path(tempfile.mkdtemp(prefix="localmods-fetch-", dir=str(self.staging_dir) if self.staging_dir else None))
        try:
            try:
                path = self.fetcher.fetch(
                    source.owner,
                    source.repo,
                    source.branch,
                    subpath=source.subpath,
                    token=source.token,
                    workdir=workdir,
                )
            except FetchError as exc:
                _log.warning("fetch.failed", extra={"extra": {"source": describe(source), "kind": exc.kind.value, "error": str(exc)}})
                raise FetchFailed(f"cannot fetch {describe(source)}: {exc}", kind=exc.kind) from exc
            yield Path(path)
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

    def inspect(self, source_dir: Path, *, name: Optional[str] = None) -> Resolution:
        manifest = self.manifests.read(self.manifests.discover(source_dir))
        resolved = name or manifest.name or Path(source_dir).name
        if not is_valid_name(resolved):
            raise InvalidModuleName(resolved)
        return Resolution(name=resolved, version=resolve_version(manifest), manifest=manifest)

    def stage(
        self,
        source_dir: Path,
        resolution: Resolution,
        *,
        copy_error: Type[ModuleRegistryError] = InvalidSource,
    ) -> Path:
        """
        Copy the tree into a hidden staging directory, verify it, then move it
        to ``<name>/<version>``. An installed version is only replaced after
        the new copy is complete; on failure the staging directory is removed
        and nothing else changes.

        Copy and move failures surface as ``copy_error``.
        """
        source_dir = Path(source_dir)
        name = resolution.name
        module_root = self.layout.module_root(name)
        if _is_within(source_dir, module_root) or _is_within(module_root, source_dir):
            raise InvalidSource(f"source {source_dir} overlaps the install location of '{name}'", name=name)

        try:
            staged = self.layout.staging_dir(name)
        except OSError as exc:
            raise copy_error(f"cannot create a staging directory for '{name}': {exc}", name=name) from exc
        try:
            try:
                copy_tree(source_dir, staged)
            except OSError as exc:
                # shutil.Error (e.g. dangling symlinks) is an OSError
                raise copy_error(f"cannot copy {source_dir} for '{name}': {exc}", name=name) from exc
            # verify before anyone records this directory as installed
            self.manifests.discover(staged)
            try:
                target = self.layout.commit(name, resolution.version, staged)
            except OSError as exc:
                raise copy_error(f"cannot place version {resolution.version} of '{name}': {exc}", name=name) from exc
        except BaseException:
            _discard(staged, module_root)
            raise
        _log.info(
            "module.staged",
            extra={"extra": {"name": name, "version": resolution.version, "path": str(target)}},
        )
        return target


def _is_within(path: Path, root: Path) -> bool:
    return Path(path).resolve().is_relative_to(Path(root).resolve())


def _discard(staged: Path, module_root: Path) -> None:
    try:
        remove_tree(staged)
        if module_root.is_dir() and not any(module_root.iterdir()):
            module_root.rmdir()
    except OSError as exc:
        _log.warning("module.staging.leftover", extra={"extra": {"path": str(staged), "error": str(exc)}})
