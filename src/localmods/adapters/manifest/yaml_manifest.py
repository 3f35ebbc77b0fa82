from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml

from localmods.config import const
from localmods.domain import ManifestInfo
from localmods.ports.manifest import ManifestReader
from localmods.services.module.errors import InvalidSource


def is_manifest_name(filename: str) -> bool:
    lower = filename.lower()
    return lower in const.MANIFEST_NAMES or any(lower.endswith(s) and len(lower) > len(s) for s in const.MANIFEST_SUFFIXES)


def _stem_name(path: Path) -> Optional[str]:
    # Foo.module.yaml -> Foo; module.yaml carries no name
    lower = path.name.lower()
    for suffix in const.MANIFEST_SUFFIXES:
        if lower.endswith(suffix):
            return path.name[: -len(suffix)]
    return None


def _scalar(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (bool, dict, list)):
        return None
    text = str(value).strip()
    return text or None


class YamlManifestReader(ManifestReader):
    """
    Module manifest in the source root:
      module.yaml | module.yml | <Name>.module.yaml | <Name>.module.yml
    Optional keys: ``name``, ``version``.
    """

    def discover(self, source_dir: Path) -> Path:
        source_dir = Path(source_dir)
        if not source_dir.is_dir():
            raise InvalidSource(f"source directory does not exist: {source_dir}")
        found = [p for p in sorted(source_dir.iterdir()) if p.is_file() and is_manifest_name(p.name)]
        if not found:
            raise InvalidSource(f"no module manifest found in {source_dir}")
        if len(found) > 1:
            names = ", ".join(p.name for p in found)
            raise InvalidSource(f"ambiguous module manifest in {source_dir}: {names}")
        return found[0]

    def read(self, path: Path) -> ManifestInfo:
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            raise InvalidSource(f"cannot read manifest {path}: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise InvalidSource(f"manifest {path} must be a mapping")
        return ManifestInfo(
            path=Path(path),
            name=_scalar(data.get("name")) or _stem_name(Path(path)),
            version=_scalar(data.get("version")),
        )
