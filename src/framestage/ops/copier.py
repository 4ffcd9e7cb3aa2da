from __future__ import annotations

from pathlib import Path
import os
import shutil

from framestage.util.paths import collision_safe, ensure_dir

def copy_verified(src: Path, dst: Path) -> Path:
    """Copy `src` to `dst` (data + timestamps) and check the copy landed.

    A partial copy is removed before the error propagates.
    """
    ensure_dir(dst.parent)
    try:
        shutil.copy2(src, dst)
        if dst.stat().st_size != src.stat().st_size:
            raise OSError(f"Size mismatch copying {src.name}")
    except BaseException:
        dst.unlink(missing_ok=True)
        raise
    return dst

def move_into(src: Path, target_dir: Path, name: str | None = None) -> Path:
    """Move `src` into `target_dir` without overwriting anything there."""
    ensure_dir(target_dir)
    dst = collision_safe(target_dir / (name or src.name))
    shutil.move(str(src), str(dst))
    return dst

def finalize_source(src: Path, placed: Path) -> None:
    """Delete the intake original once its ready-area counterpart exists."""
    if not placed.is_file():
        raise OSError(f"Refusing to delete {src.name}: {placed} is missing")
    os.remove(src)
