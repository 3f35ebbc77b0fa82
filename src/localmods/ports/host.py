from __future__ import annotations
from pathlib import Path
from typing import Optional, Protocol


class HostRuntime(Protocol):
    def current_package_name(self) -> Optional[str]: ...
    def is_loaded(self, name: str) -> bool: ...
    def load(self, name: str, version_path: Path) -> None: ...
    def unload(self, name: str) -> None: ...
