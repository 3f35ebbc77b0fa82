# tests/test_process_host.py
from __future__ import annotations

import sys

import pytest

from localmods.adapters.host.process_host import ProcessHost, import_name


def _write_version(install_root, name, version):
    vdir = install_root / name / version
    vdir.mkdir(parents=True)
    (vdir / f"{import_name(name)}.py").write_text(f"VERSION = {version!r}\n", encoding="utf-8")
    return vdir


@pytest.fixture
def isolated_path(monkeypatch):
    monkeypatch.setattr(sys, "path", sys.path[:])
    return sys.path


def test_package_name_defaults_to_own_package():
    assert ProcessHost().current_package_name() == "localmods"
    assert ProcessHost(package_name="tool").current_package_name() == "tool"


def test_import_name():
    assert import_name("my-mod") == "my_mod"


def test_load_reload_and_unload(tmp_path, isolated_path):
    name = "lm-host-check"
    mod = import_name(name)
    root = tmp_path / "modules"
    v1 = _write_version(root, name, "1.0.0")
    v2 = _write_version(root, name, "2.0.0")
    host = ProcessHost(install_root=root)
    try:
        assert not host.is_loaded(name)

        host.load(name, v1)
        assert host.is_loaded(name)
        assert sys.modules[mod].VERSION == "1.0.0"

        host.load(name, v2)
        assert sys.modules[mod].VERSION == "2.0.0"
        assert str(v1) not in sys.path
        assert sys.path[0] == str(v2)

        host.unload(name)
        assert not host.is_loaded(name)
        assert str(v2) not in sys.path
    finally:
        sys.modules.pop(mod, None)


def test_load_of_broken_module_raises_import_error(tmp_path, isolated_path):
    root = tmp_path / "modules"
    vdir = root / "lm_missing_mod" / "1.0.0"
    vdir.mkdir(parents=True)
    host = ProcessHost(install_root=root)
    with pytest.raises(ImportError):
        host.load("lm_missing_mod", vdir)


def test_unload_purges_submodules_only_for_target(tmp_path):
    modules = {"pkg": object(), "pkg.sub": object(), "pkgother": object(), "json": object()}
    path = [str(tmp_path / "modules" / "pkg" / "1.0.0"), str(tmp_path / "modules" / "pkgother" / "1.0.0"), "/usr/lib"]
    host = ProcessHost(install_root=tmp_path / "modules", modules=modules, search_path=path)

    host.unload("pkg")

    assert set(modules) == {"pkgother", "json"}
    assert path == [str(tmp_path / "modules" / "pkgother" / "1.0.0"), "/usr/lib"]
