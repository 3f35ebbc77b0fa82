# src/localmods/services/settings.py
from __future__ import annotations
from dataclasses import dataclass, field, replace
import os
from pathlib import Path
from typing import Optional, Dict

from dotenv import dotenv_values

from localmods.config import const
from localmods.adapters.fs.path_provider import default_base_dir, normalize_path

_SAFE_OVERRIDES = {"base_dir", "install_root", "fetcher", "log_level"}


def _read_env_file(path: Optional[str]) -> Dict[str, str]:
    if not path or not Path(path).exists():
        return {}
    return {k: v for k, v in dotenv_values(path).items() if v is not None}


@dataclass(frozen=True, slots=True)
class Settings:
    base_dir: Path
    # None -> platform default under the home directory
    install_root: Optional[Path] = None
    fetcher: str = const.DEFAULT_FETCHER
    github_token: Optional[str] = field(default=None, repr=False)
    github_url: str = const.GITHUB_URL
    github_api_url: str = const.GITHUB_API_URL
    http_timeout: float = const.HTTP_TIMEOUT_SEC
    host_package: Optional[str] = None
    log_level: str = "INFO"

    @staticmethod
    def from_sources(env_file: Optional[str] = ".env") -> "Settings":
        env_file_vars = _read_env_file(env_file)

        def pick_env(key: str, default: Optional[str] = None) -> Optional[str]:
            return os.environ.get(key) or env_file_vars.get(key) or default

        base = pick_env("LOCALMODS_BASE_DIR")
        install_root = pick_env("LOCALMODS_INSTALL_ROOT")
        fetcher = (pick_env("LOCALMODS_FETCHER", const.DEFAULT_FETCHER) or const.DEFAULT_FETCHER).strip().lower()
        if fetcher not in {"archive", "git"}:
            raise ValueError(f"LOCALMODS_FETCHER must be 'archive' or 'git', got {fetcher!r}")
        timeout = pick_env("LOCALMODS_HTTP_TIMEOUT")

        return Settings(
            base_dir=normalize_path(base) if base else default_base_dir(),
            install_root=normalize_path(install_root) if install_root else None,
            fetcher=fetcher,
            github_token=pick_env("LOCALMODS_GITHUB_TOKEN") or pick_env("GITHUB_TOKEN"),
            github_url=pick_env("LOCALMODS_GITHUB_URL", const.GITHUB_URL) or const.GITHUB_URL,
            github_api_url=pick_env("LOCALMODS_GITHUB_API_URL", const.GITHUB_API_URL) or const.GITHUB_API_URL,
            http_timeout=float(timeout) if timeout else const.HTTP_TIMEOUT_SEC,
            host_package=pick_env("LOCALMODS_HOST_PACKAGE"),
            log_level=pick_env("LOCALMODS_LOG_LEVEL", "INFO") or "INFO",
        )

    def with_overrides(self, **kw) -> "Settings":
        safe = {k: v for k, v in kw.items() if k in _SAFE_OVERRIDES and v is not None}
        for key in ("base_dir", "install_root"):
            if key in safe:
                safe[key] = normalize_path(safe[key])
        return replace(self, **safe)
