from __future__ import annotations
import json, os, shutil, stat, sys, tempfile
from pathlib import Path
from typing import Any


def write_text_atomic(path: Path, data: str) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=p.name + ".", suffix=".tmp", dir=str(p.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp, p)
    finally:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass


def write_json_atomic(path: Path, obj: Any) -> None:
    write_text_atomic(path, json.dumps(obj, ensure_ascii=False, indent=2))


def _clear_readonly(func, path, exc: BaseException) -> None:
    # git object files are read-only on Windows
    if not isinstance(exc, PermissionError):
        raise exc
    os.chmod(path, stat.S_IWRITE)
    func(path)


def remove_tree(path: Path) -> bool:
    p = Path(path)
    if not p.exists():
        return False
    if sys.version_info >= (3, 12):
        shutil.rmtree(p, onexc=_clear_readonly)
    else:
        shutil.rmtree(p, onerror=lambda func, path, exc_info: _clear_readonly(func, path, exc_info[1]))
    return True


def copy_tree(src: Path, dst: Path) -> None:
    """Recursive copy; existing files in ``dst`` are overwritten."""
    shutil.copytree(src, dst, dirs_exist_ok=True)
