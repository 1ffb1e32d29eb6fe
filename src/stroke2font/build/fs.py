from __future__ import annotations

import shutil
from pathlib import Path


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def remove_tree(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def reset_dir(path: Path) -> None:
    remove_tree(path)
    ensure_dir(path)


def copy_file(src: Path, dst: Path) -> None:
    ensure_dir(dst.parent)
    shutil.copyfile(src, dst)


def remove_if_exists(path: Path) -> bool:
    """Remove a file, treating an already-absent file as success."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
