from __future__ import annotations

from pathlib import Path
import math
import re
import shutil

from framestage.core.outcomes import BatchGroup
from framestage.util.paths import collision_safe, ensure_dir, is_os_artifact

BATCH_DIR_REGEX = re.compile(r"^batch-(?P<n>\d+)$")

def batch_folder_name(index: int) -> str:
    return f"batch-{index}"

def is_batch_dir(p: Path) -> bool:
    return p.is_dir() and BATCH_DIR_REGEX.match(p.name) is not None

def batch_dirs(ready_dir: Path) -> list[Path]:
    if not ready_dir.is_dir():
        return []
    dirs = [p for p in ready_dir.iterdir() if is_batch_dir(p)]
    return sorted(dirs, key=lambda p: int(BATCH_DIR_REGEX.match(p.name).group("n")))

def ready_files(ready_dir: Path) -> list[Path]:
    """All files awaiting upload: top level plus every batch folder.

    Ordered lexically by file name.
    """
    if not ready_dir.is_dir():
        return []
    found: list[Path] = []
    for folder in [ready_dir, *batch_dirs(ready_dir)]:
        found.extend(p for p in folder.iterdir() if p.is_file() and not is_os_artifact(p))
    return sorted(found, key=lambda p: (p.name, str(p.parent)))

def partition(items: list, cap: int) -> list[list]:
    """Split `items` into ceil(len/cap) consecutive groups of at most `cap`."""
    if cap < 1:
        raise ValueError("batch size must be >= 1")
    if not items:
        return []
    count = math.ceil(len(items) / cap)
    return [items[i * cap:(i + 1) * cap] for i in range(count)]

def batch_ready_area(ready_dir: Path, cap: int) -> list[BatchGroup]:
    """Re-partition the ready area into batch-N folders of at most `cap` files.

    Policy:
    - N <= cap: nothing to batch; any batch folders are flattened back.
    - N > cap: files are moved (not copied) into batch-1..batch-K in order,
      filling each folder to `cap` before the next.
    - Files already in their assigned folder are left alone, so a rerun
      finishes an interrupted pass.
    - Batch folders left empty are removed; non-empty ones never are.
    """
    if cap < 1:
        raise ValueError("batch size must be >= 1")
    files = ready_files(ready_dir)
    if len(files) <= cap:
        _flatten(ready_dir, files)
        remove_empty_batch_dirs(ready_dir)
        return []

    groups: list[BatchGroup] = []
    for i, chunk in enumerate(partition(files, cap), start=1):
        folder = ensure_dir(ready_dir / batch_folder_name(i))
        names: list[str] = []
        for f in chunk:
            if f.parent != folder:
                dst = collision_safe(folder / f.name)
                shutil.move(str(f), str(dst))
                f = dst
            names.append(f.name)
        groups.append(BatchGroup(name=folder.name, files=tuple(names)))

    remove_empty_batch_dirs(ready_dir)
    return groups

def _flatten(ready_dir: Path, files: list[Path]) -> None:
    for f in files:
        if f.parent == ready_dir:
            continue
        dst = collision_safe(ready_dir / f.name)
        shutil.move(str(f), str(dst))

def remove_empty_batch_dirs(ready_dir: Path) -> list[str]:
    removed: list[str] = []
    for d in batch_dirs(ready_dir):
        try:
            if any(d.iterdir()):
                continue
            d.rmdir()
            removed.append(d.name)
        except OSError:
            continue
    return removed
