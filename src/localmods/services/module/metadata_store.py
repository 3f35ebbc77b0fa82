# src/localmods/services/module/metadata_store.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from localmods.domain import InstalledModuleRecord
from localmods.services.fs.safe_io import write_json_atomic
from localmods.services.module.errors import CorruptMetadata

_log = logging.getLogger("localmods.module.store")


@dataclass(frozen=True, slots=True)
class MetadataProblem:
    path: Path
    reason: str


class MetadataStore:
    """
    One JSON record per module: ``<metadata_dir>/<Name>.json``.

    ``load_all`` skips unreadable files so a single bad record never hides the
    rest of the registry.
    """

    def __init__(self, metadata_dir: Path):
        self.metadata_dir = Path(metadata_dir)

    def path_for(self, name: str) -> Path:
        return self.metadata_dir / f"{name}.json"

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def save(self, record: InstalledModuleRecord) -> Path:
        path = self.path_for(record.name)
        # whole document in one replace: readers never see a partial record
        write_json_atomic(path, record.to_json())
        _log.debug("metadata.saved", extra={"extra": {"name": record.name, "path": str(path)}})
        return path

    def load(self, name: str) -> Optional[InstalledModuleRecord]:
        path = self.path_for(name)
        if not path.is_file():
            return None
        try:
            return self._parse(path)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise CorruptMetadata(name, str(exc)) from exc

    def load_all(self, problems: Optional[list[MetadataProblem]] = None) -> list[InstalledModuleRecord]:
        if not self.metadata_dir.is_dir():
            return []
        records: list[InstalledModuleRecord] = []
        for path in sorted(self.metadata_dir.glob("*.json")):
            if not path.is_file():
                continue
            try:
                records.append(self._parse(path))
            except (OSError, ValueError, KeyError, TypeError) as exc:
                _log.warning("metadata.corrupt", extra={"extra": {"path": str(path), "error": str(exc)}})
                if problems is not None:
                    problems.append(MetadataProblem(path=path, reason=str(exc)))
        records.sort(key=lambda r: r.name)
        return records

    def delete(self, name: str) -> bool:
        path = self.path_for(name)
        existed = path.exists()
        path.unlink(missing_ok=True)
        return existed

    @staticmethod
    def _parse(path: Path) -> InstalledModuleRecord:
        # json.JSONDecodeError is a ValueError
        data = json.loads(path.read_text(encoding="utf-8"))
        return InstalledModuleRecord.from_json(data)
