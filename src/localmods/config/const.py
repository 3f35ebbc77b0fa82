# src/localmods/config/const.py
from __future__ import annotations

# fallback when a source manifest carries no usable version
DEFAULT_VERSION: str = "0.0.0"
DEFAULT_BRANCH: str = "main"

METADATA_DIR_NAME: str = ".metadata"
BASE_DIR_NAME: str = ".localmods"
INSTALL_DIR_NAME: str = "modules"

MANIFEST_NAMES: tuple[str, ...] = ("module.yaml", "module.yml")
MANIFEST_SUFFIXES: tuple[str, ...] = (".module.yaml", ".module.yml")

GITHUB_URL: str = "https://github.com"
GITHUB_API_URL: str = "https://api.github.com"
HTTP_TIMEOUT_SEC: float = 60.0

# archive | git
DEFAULT_FETCHER: str = "archive"
