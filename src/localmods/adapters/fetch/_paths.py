from __future__ import annotations

from pathlib import Path
from typing import Optional

from localmods.ports.fetcher import FetchError, FetchErrorKind


def safe_join(root: Path, rel: str) -> Path:
    rel_path = Path(rel)
    if rel_path.is_absolute():
        raise ValueError("unsafe path traversal (absolute)")
    p = (root / rel_path).resolve()
    try:
        p.relative_to(root.resolve())
    except ValueError:
        raise ValueError("unsafe path traversal")
    return p


def select_subpath(tree: Path, subpath: Optional[str], coordinate: str) -> Path:
    if not subpath:
        return tree
    try:
        target = safe_join(tree, subpath)
    except ValueError as exc:
        raise FetchError(FetchErrorKind.NOT_FOUND, f"invalid subpath '{subpath}' in {coordinate}") from exc
    if not target.is_dir():
        raise FetchError(FetchErrorKind.NOT_FOUND, f"subpath '{subpath}' not found in {coordinate}")
    return target
