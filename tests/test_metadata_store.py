from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from localmods.domain import InstalledModuleRecord, SourceType
from localmods.services.module import CorruptMetadata, MetadataProblem, MetadataStore


def _record(name: str, **kw) -> InstalledModuleRecord:
    base = dict(
        name=name,
        version="1.0.0",
        source_type=SourceType.LOCAL,
        source_path=f"/src/{name}",
        install_path=f"/mods/{name}",
        latest_version_path=f"/mods/{name}/1.0.0",
        installed_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
    )
    base.update(kw)
    return InstalledModuleRecord(**base)


@pytest.fixture
def store(tmp_path) -> MetadataStore:
    return MetadataStore(tmp_path / ".metadata")


def test_round_trip_all_fields(store):
    rec = _record(
        "Remote",
        source_type=SourceType.GITHUB,
        source_path="acme/remote",
        last_updated=datetime(2024, 6, 2, 8, 0, 5, 123456, tzinfo=timezone.utc),
        branch="dev",
        module_subpath="modules/remote",
    )
    store.save(rec)
    assert store.load("Remote") == rec


def test_round_trip_with_nulls(store):
    rec = _record("Foo")
    store.save(rec)
    loaded = store.load("Foo")
    assert loaded == rec
    assert loaded.last_updated is None and loaded.branch is None


def test_on_disk_schema(store):
    store.save(_record("Foo"))
    data = json.loads(store.path_for("Foo").read_text(encoding="utf-8"))
    assert set(data) == {
        "Name",
        "Version",
        "SourceType",
        "SourcePath",
        "InstallPath",
        "InstallDate",
        "LastUpdated",
        "Branch",
        "ModuleSubPath",
        "LatestVersionPath",
    }
    assert data["SourceType"] == "Local"
    assert data["LastUpdated"] is None
    assert data["InstallDate"].startswith("2024-05-01T12:30:00")


def test_save_overwrites_and_leaves_no_temp_files(store):
    store.save(_record("Foo"))
    store.save(_record("Foo", version="2.0.0"))
    assert store.load("Foo").version == "2.0.0"
    assert [p.name for p in store.metadata_dir.iterdir()] == ["Foo.json"]


def test_load_missing_returns_none(store):
    assert store.load("nope") is None
    assert not store.exists("nope")


def test_load_corrupt_raises(store):
    store.metadata_dir.mkdir(parents=True)
    store.path_for("Bad").write_text("{not json", encoding="utf-8")
    with pytest.raises(CorruptMetadata):
        store.load("Bad")


def test_load_all_sorted(store):
    for n in ("zeta", "Alpha", "mid"):
        store.save(_record(n))
    assert [r.name for r in store.load_all()] == ["Alpha", "mid", "zeta"]


def test_load_all_skips_corrupt_files(store):
    for n in ("a", "b", "c"):
        store.save(_record(n))
    store.path_for("broken").write_text('{"Name": "broken"}', encoding="utf-8")
    problems: list[MetadataProblem] = []

    records = store.load_all(problems)

    assert [r.name for r in records] == ["a", "b", "c"]
    assert len(problems) == 1
    assert problems[0].path.name == "broken.json"


def test_load_all_rejects_bad_types(store):
    store.save(_record("ok"))
    payload = _record("weird").to_json()
    payload["SourceType"] = "Ftp"
    store.path_for("weird").write_text(json.dumps(payload), encoding="utf-8")
    assert [r.name for r in store.load_all()] == ["ok"]


def test_load_all_without_directory(store):
    assert store.load_all() == []


def test_delete_is_idempotent(store):
    store.save(_record("Foo"))
    assert store.delete("Foo") is True
    assert store.delete("Foo") is False
    assert store.load("Foo") is None
