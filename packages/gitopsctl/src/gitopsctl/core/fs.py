from __future__ import annotations

import shutil
from pathlib import Path

from .errors import ScriptError
from .exit_codes import ERR_IO


def list_dirs(path: Path) -> list[Path]:
    if not path.is_dir():
        return []
    return sorted(p for p in path.iterdir() if p.is_dir())


def read_text_or_none(path: Path) -> str | None:
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8")


def write_text(path: Path, content: str) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ScriptError(f"unable to write {path}: {exc}", ERR_IO, kind="write_failed") from exc
    return path


def remove_tree(path: Path) -> bool:
    if not path.exists():
        return False
    try:
        shutil.rmtree(path)
    except OSError as exc:
        raise ScriptError(f"unable to remove {path}: {exc}", ERR_IO, kind="remove_failed") from exc
    return True


def remove_if_empty(path: Path) -> bool:
    if not path.is_dir() or any(path.iterdir()):
        return False
    try:
        path.rmdir()
    except OSError as exc:
        raise ScriptError(f"unable to remove {path}: {exc}", ERR_IO, kind="remove_failed") from exc
    return True


def snapshot_tree(root: Path) -> dict[str, str]:
    """Map every file under `root` (posix relative path) to its text content."""
    if not root.is_dir():
        return {}
    return {
        p.relative_to(root).as_posix(): p.read_text(encoding="utf-8")
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }
