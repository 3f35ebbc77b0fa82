# src/localmods/domain/module.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional

from localmods.domain.types import SourceType


@dataclass(frozen=True, slots=True)
class ManifestInfo:
    path: Path
    name: Optional[str] = None
    version: Optional[str] = None


def _format_ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_ts(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string, got {type(value).__name__}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _require_str(data: Mapping[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str) or not value:
        raise TypeError(f"'{key}' must be a non-empty string")
    return value


def _optional_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string or null")
    return value


@dataclass(frozen=True, slots=True)
class InstalledModuleRecord:
    """Persisted provenance of one installed module.

    Serialized as one JSON document per module under ``<install_root>/.metadata``.
    """

    name: str
    version: str
    source_type: SourceType
    source_path: str
    install_path: str
    latest_version_path: str
    installed_at: datetime
    last_updated: Optional[datetime] = None
    branch: Optional[str] = None
    module_subpath: Optional[str] = None

    def to_json(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Version": self.version,
            "SourceType": self.source_type.value,
            "SourcePath": self.source_path,
            "InstallPath": self.install_path,
            "InstallDate": _format_ts(self.installed_at),
            "LastUpdated": _format_ts(self.last_updated),
            "Branch": self.branch,
            "ModuleSubPath": self.module_subpath,
            "LatestVersionPath": self.latest_version_path,
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "InstalledModuleRecord":
        """Raises KeyError / TypeError / ValueError on malformed input."""
        if not isinstance(data, Mapping):
            raise TypeError("metadata document must be a JSON object")
        installed_at = _parse_ts(data["InstallDate"])
        if installed_at is None:
            raise ValueError("'InstallDate' must not be null")
        return cls(
            name=_require_str(data, "Name"),
            version=_require_str(data, "Version"),
            source_type=SourceType(data["SourceType"]),
            source_path=_require_str(data, "SourcePath"),
            install_path=_require_str(data, "InstallPath"),
            latest_version_path=_require_str(data, "LatestVersionPath"),
            installed_at=installed_at,
            last_updated=_parse_ts(data.get("LastUpdated")),
            branch=_optional_str(data, "Branch"),
            module_subpath=_optional_str(data, "ModuleSubPath"),
        )
