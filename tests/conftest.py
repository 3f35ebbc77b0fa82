# tests/conftest.py
from __future__ import annotations
import shutil
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Optional

import pytest

from localmods.adapters.fs.path_provider import PathProvider
from localmods.adapters.manifest.yaml_manifest import YamlManifestReader
from localmods.domain import Event
from localmods.ports.fetcher import FetchError, FetchErrorKind
from localmods.services.agent_context import AppContext, set_ctx, clear_ctx
from localmods.services.eventbus import LocalEventBus
from localmods.services.logging import setup_logging, attach_event_logger
from localmods.services.module import LifecycleRegistry
from localmods.services.settings import Settings

OWN_NAME = "localmods"
_MIN_PY = (3, 10)


# ---- host stand-in: records load / unload instead of touching sys.modules ----
class FakeHost:
    def __init__(self, own_name: Optional[str] = OWN_NAME):
        self.own_name = own_name
        self.loaded: dict[str, Optional[Path]] = {}
        self.calls: list[tuple] = []

    def current_package_name(self) -> Optional[str]:
        return self.own_name

    def is_loaded(self, name: str) -> bool:
        return name in self.loaded

    def load(self, name: str, version_path: Path) -> None:
        self.calls.append(("load", name, Path(version_path)))
        self.loaded[name] = Path(version_path)

    def unload(self, name: str) -> None:
        self.calls.append(("unload", name))
        self.loaded.pop(name, None)


# ---- fetcher stand-in: serves prepared trees per owner/repo@branch ----
class FakeFetcher:
    def __init__(self) -> None:
        self.trees: dict[str, Path] = {}
        self.failures: dict[str, FetchErrorKind] = {}
        self.calls: list[tuple] = []

    def add(self, coordinate: str, tree: Path, branch: str = "main") -> None:
        self.trees[f"{coordinate}@{branch}"] = Path(tree)

    def fail(self, coordinate: str, kind: FetchErrorKind, branch: str = "main") -> None:
        self.failures[f"{coordinate}@{branch}"] = kind

    def fetch(self, owner, repo, branch=None, *, subpath=None, token=None, workdir):
        key = f"{owner}/{repo}@{branch or 'main'}"
        self.calls.append((key, subpath, token))
        if key in self.failures:
            raise FetchError(self.failures[key], f"{key}: {self.failures[key].value}")
        tree = self.trees.get(key)
        if tree is None:
            raise FetchError(FetchErrorKind.NOT_FOUND, f"{key} not found")
        dest = Path(workdir) / repo
        shutil.copytree(tree, dest)
        if subpath:
            dest = dest / subpath
            if not dest.is_dir():
                raise FetchError(FetchErrorKind.NOT_FOUND, f"{subpath} not found in {key}")
        return dest


@pytest.fixture
def make_module() -> Callable[..., Path]:
    """Write a module source tree (manifest + files) and return its directory."""

    def _make(
        root: Path,
        name: Optional[str],
        version: Optional[str] = "1.0.0",
        *,
        manifest: str = "module.yaml",
        files: Optional[dict[str, str]] = None,
    ) -> Path:
        root = Path(root)
        root.mkdir(parents=True, exist_ok=True)
        lines = []
        if name is not None:
            lines.append(f"name: {name}")
        if version is not None:
            lines.append(f"version: '{version}'")
        (root / manifest).write_text("\n".join(lines) + "\n", encoding="utf-8")
        for rel, content in (files if files is not None else {"main.py": f"VERSION = {version!r}\n"}).items():
            target = root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return root

    return _make


# ---------- CLI application ----------
@pytest.fixture
def cli_app():
    from localmods.apps.cli.app import app

    return app


@pytest.fixture
def host(_autocontext) -> FakeHost:
    return _autocontext.host


@pytest.fixture
def fetcher(_autocontext) -> FakeFetcher:
    return _autocontext.fetcher


@pytest.fixture
def install_root(_autocontext) -> Path:
    return _autocontext.paths.install_root()


@pytest.fixture
def registry(_autocontext) -> LifecycleRegistry:
    return _autocontext.registry


@pytest.fixture
def events(_autocontext) -> list[Event]:
    seen: list[Event] = []
    _autocontext.bus.subscribe("module.", seen.append)
    return seen


# ---------- autouse: a fresh AppContext per test ----------
@pytest.fixture(autouse=True)
def _autocontext(tmp_path, monkeypatch):
    base_dir = tmp_path / "base"
    monkeypatch.setenv("LOCALMODS_BASE_DIR", str(base_dir))
    monkeypatch.setenv("LOCALMODS_INSTALL_ROOT", str(tmp_path / "modules"))
    monkeypatch.delenv("LOCALMODS_FETCHER", raising=False)
    monkeypatch.delenv("LOCALMODS_HOST_PACKAGE", raising=False)

    settings = Settings.from_sources(env_file=None)
    paths = PathProvider(settings)
    paths.ensure_tree()

    bus = LocalEventBus()
    ctx = AppContext(
        settings=settings,
        paths=paths,
        bus=bus,
        fetcher=FakeFetcher(),
        host=FakeHost(),
        manifests=YamlManifestReader(),
    )
    set_ctx(ctx)
    logger = setup_logging(paths)
    attach_event_logger(bus, logger.getChild("events"))

    try:
        yield ctx
    finally:
        clear_ctx()


def pytest_sessionstart(session):
    if sys.version_info < _MIN_PY:
        from _pytest.outcomes import Exit

        raise Exit(
            f"localmods tests require Python >= {'.'.join(map(str, _MIN_PY))}; "
            f"current: {sys.executable} ({sys.version.split()[0]})",
            returncode=2,
        )
